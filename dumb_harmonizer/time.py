import logging
import re
import typing as t
from fractions import Fraction
from types import MappingProxyType

from music21 import duration as m21_duration

from dumb_harmonizer.constants import (
    DIVISIONS,
    SUPPORTED_BEAT_UNITS,
    TIME_TYPE,
    WHOLE_NOTE_TICKS,
)
from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.pitch_utils.types import Ticks

LOGGER = logging.getLogger(__name__)

METER_RE = re.compile(r"^\s*(?P<n_beats>\d+)\s*/\s*(?P<beat_unit>\d+)\s*$")

# Plain note types, longest first, with their length in quarter notes
NOTE_TYPES = MappingProxyType(
    {
        "whole": Fraction(4),
        "half": Fraction(2),
        "quarter": Fraction(1),
        "eighth": Fraction(1, 2),
        "16th": Fraction(1, 4),
        "32nd": Fraction(1, 8),
    }
)


class Meter:
    """A simple meter: a number of beats, each of which is a `beat_unit`
    note (e.g., 6/8 is understood as six eighth-note beats).

    Durations are expressed as fractions of a whole note; ticks count
    `DIVISIONS` per quarter note.

    >>> meter = Meter("6/8")
    >>> meter
    Meter('6/8')
    >>> meter.n_beats, meter.beat_unit
    (6, 8)
    >>> meter.beat_dur, meter.bar_dur
    (Fraction(1, 8), Fraction(3, 4))
    >>> meter.beat_ticks, meter.bar_ticks
    (4, 24)

    >>> Meter("4/3")
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: Beat unit must be one of (1, 2, 4, 8, 16, 32), not 3
    >>> Meter("four/4")
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: Can't parse meter 'four/4'
    """

    def __init__(self, ts_str: str):
        m = METER_RE.match(ts_str) if isinstance(ts_str, str) else None
        if m is None:
            raise InvalidInputError(f"Can't parse meter {ts_str!r}")
        n_beats = int(m.group("n_beats"))
        beat_unit = int(m.group("beat_unit"))
        if n_beats < 1:
            raise InvalidInputError(f"Number of beats must be positive, not {n_beats}")
        if beat_unit not in SUPPORTED_BEAT_UNITS:
            raise InvalidInputError(
                f"Beat unit must be one of {SUPPORTED_BEAT_UNITS}, not {beat_unit}"
            )
        self._ts_str = f"{n_beats}/{beat_unit}"
        self._n_beats = n_beats
        self._beat_unit = beat_unit

    def __repr__(self):
        return f"{self.__class__.__name__}('{self._ts_str}')"

    def __str__(self):
        return self._ts_str

    def __eq__(self, other):
        if not isinstance(other, Meter):
            return NotImplemented
        return self._ts_str == other._ts_str

    def __hash__(self):
        return hash(self._ts_str)

    @property
    def n_beats(self) -> int:
        return self._n_beats

    @property
    def beat_unit(self) -> int:
        return self._beat_unit

    @property
    def beat_dur(self) -> TIME_TYPE:
        return TIME_TYPE(1, self._beat_unit)

    @property
    def bar_dur(self) -> TIME_TYPE:
        return TIME_TYPE(self._n_beats, self._beat_unit)

    @property
    def beat_ticks(self) -> Ticks:
        return whole_notes_to_ticks(self.beat_dur)

    @property
    def bar_ticks(self) -> Ticks:
        return whole_notes_to_ticks(self.bar_dur)


def whole_notes_to_ticks(dur: TIME_TYPE) -> Ticks:
    """
    >>> whole_notes_to_ticks(Fraction(1, 4))
    8
    >>> whole_notes_to_ticks(Fraction(1, 32))
    1
    """
    ticks = dur * WHOLE_NOTE_TICKS
    if ticks.denominator != 1:
        raise ValueError(f"{dur} is not a whole number of ticks")
    return int(ticks)


def ticks_to_quarters(ticks: Ticks) -> TIME_TYPE:
    """
    >>> ticks_to_quarters(12)
    Fraction(3, 2)
    """
    return TIME_TYPE(ticks, DIVISIONS)


def get_note_type(ticks: Ticks) -> t.Tuple[str, int]:
    """Returns the notated type and number of dots for a duration in ticks.

    >>> get_note_type(8)
    ('quarter', 0)
    >>> get_note_type(24)
    ('half', 1)
    >>> get_note_type(1)
    ('32nd', 0)

    Durations that can't be written as a single (possibly dotted) note get
    the longest plain type that fits:
    >>> get_note_type(40)  # a 5/4 measure
    ('whole', 0)
    >>> get_note_type(0)
    Traceback (most recent call last):
    ValueError: Duration must be positive, not 0
    """
    if ticks <= 0:
        raise ValueError(f"Duration must be positive, not {ticks}")
    quarters = ticks_to_quarters(ticks)
    duration = m21_duration.Duration(quarters)
    if duration.type in NOTE_TYPES:
        return duration.type, duration.dots
    for note_type, length in NOTE_TYPES.items():
        if quarters >= length:
            return note_type, 0
    return "32nd", 0
