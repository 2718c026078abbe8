from fractions import Fraction

import pytest

from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.time import (
    Meter,
    get_note_type,
    ticks_to_quarters,
    whole_notes_to_ticks,
)


@pytest.mark.parametrize(
    "ts_str,beat_dur,bar_dur,beat_ticks,bar_ticks",
    [
        ("4/4", Fraction(1, 4), Fraction(1), 8, 32),
        ("3/4", Fraction(1, 4), Fraction(3, 4), 8, 24),
        ("6/8", Fraction(1, 8), Fraction(3, 4), 4, 24),
        ("2/2", Fraction(1, 2), Fraction(1), 16, 32),
        ("5/4", Fraction(1, 4), Fraction(5, 4), 8, 40),
        ("7/16", Fraction(1, 16), Fraction(7, 16), 2, 14),
        ("3/32", Fraction(1, 32), Fraction(3, 32), 1, 3),
        ("1/1", Fraction(1), Fraction(1), 32, 32),
    ],
)
def test_meter(ts_str, beat_dur, bar_dur, beat_ticks, bar_ticks):
    meter = Meter(ts_str)
    assert meter.beat_dur == beat_dur
    assert meter.bar_dur == bar_dur
    assert meter.beat_ticks == beat_ticks
    assert meter.bar_ticks == bar_ticks
    assert str(meter) == ts_str


@pytest.mark.parametrize("ts_str", ["4/3", "0/4", "4", "4/4/4", "a/b", "", "3/64"])
def test_bad_meter(ts_str):
    with pytest.raises(InvalidInputError):
        Meter(ts_str)


def test_meter_equality():
    assert Meter("3/4") == Meter(" 3 / 4 ")
    assert Meter("3/4") != Meter("6/8")
    assert len({Meter("3/4"), Meter("3/4")}) == 1


def test_ticks():
    assert whole_notes_to_ticks(Fraction(3, 8)) == 12
    assert ticks_to_quarters(3) == Fraction(3, 8)
    with pytest.raises(ValueError):
        whole_notes_to_ticks(Fraction(1, 64))


@pytest.mark.parametrize(
    "ticks,expected",
    [
        (32, ("whole", 0)),
        (16, ("half", 0)),
        (12, ("quarter", 1)),
        (8, ("quarter", 0)),
        (4, ("eighth", 0)),
        (6, ("eighth", 1)),
        (2, ("16th", 0)),
        (1, ("32nd", 0)),
        (48, ("whole", 1)),
        (5, ("eighth", 0)),
    ],
)
def test_get_note_type(ticks, expected):
    assert get_note_type(ticks) == expected
