import pytest

from dumb_harmonizer.pitch_utils.pcs import (
    get_pc_complement,
    pitch_class_among_pitches,
    pitches_with_pcs,
)


@pytest.mark.parametrize(
    "all_pcs,to_complement,expected",
    [
        ([0, 4, 7], [48, 64], [7]),
        ([0, 4, 7, 10], [43, 70], [0, 4]),
        ([0, 4, 7], [], [0, 4, 7]),
        ([0, 0, 4, 7], [0], [0, 4, 7]),
    ],
)
def test_get_pc_complement(all_pcs, to_complement, expected):
    assert get_pc_complement(all_pcs, to_complement) == expected


def test_get_pc_complement_excess():
    with pytest.raises(ValueError):
        get_pc_complement([0, 4, 7], [60, 72])
    assert get_pc_complement([0, 4, 7], [60, 72], raise_exception=False) == [4, 7]


def test_pitch_class_among_pitches():
    assert pitch_class_among_pitches(7, [43, None])
    assert not pitch_class_among_pitches(7, [None, None])


def test_pitches_with_pcs():
    assert pitches_with_pcs([48, 52, 55, 60, 64], {4, 7}) == [52, 55, 64]
    assert pitches_with_pcs([48, 52], set()) == []
