import typing as t
from collections import Counter

from dumb_harmonizer.pitch_utils.types import Pitch, PitchClass


def get_pc_complement(
    all_pcs: t.Iterable[PitchClass],
    pitches_or_pcs_to_complement: t.Iterable[PitchClass],
    raise_exception: bool = True,
) -> t.List[PitchClass]:
    """
    Note: the notion of complement is a little different than in atonal music theory
    because we allow pcs to occur more than once.

    >>> get_pc_complement([0, 0, 4, 7], [0, 4])
    [0, 7]

    >>> get_pc_complement([0, 0, 4, 7], [60, 72])
    [4, 7]

    If `raise_exception` is True, then any excess pcs in `pitches_or_pcs_to_complement`
    cause a ValueError:
    >>> get_pc_complement([0, 0, 4, 7], [0, 4, 8])
    Traceback (most recent call last):
    ValueError
    >>> get_pc_complement([0, 4, 7], [48, 72], raise_exception=False)
    [4, 7]
    """
    remaining = Counter(p % 12 for p in pitches_or_pcs_to_complement)
    out = []
    for pc in all_pcs:
        if remaining[pc]:
            remaining[pc] -= 1
        else:
            out.append(pc)
    if raise_exception and remaining.total():
        raise ValueError()
    return out


def pitch_class_among_pitches(
    pc: PitchClass, pitches: t.Iterable[Pitch | None], tet: int = 12
) -> bool:
    """
    >>> pitch_class_among_pitches(4, [60, 67, 76])
    True
    >>> pitch_class_among_pitches(4, [60, 67, 75])
    False
    >>> pitch_class_among_pitches(4, [])
    False
    >>> pitch_class_among_pitches(4, [None, 64])
    True
    """
    return any(p % tet == pc for p in pitches if p is not None)


def pitches_with_pcs(
    pitches: t.Iterable[Pitch], pcs: t.Container[PitchClass]
) -> t.List[Pitch]:
    """
    >>> pitches_with_pcs([48, 52, 55, 60], {0})
    [48, 60]
    """
    return [p for p in pitches if p % 12 in pcs]
