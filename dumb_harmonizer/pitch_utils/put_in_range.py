import typing as t
from itertools import chain

from dumb_harmonizer.constants import HI_PITCH, LOW_PITCH, TET
from dumb_harmonizer.pitch_utils.types import Pitch, PitchOrPitchClass

DEFAULT_POOL_OCTAVES = range(-2, 5)


def get_all_in_range(
    p: t.Sequence[PitchOrPitchClass] | PitchOrPitchClass,
    low: Pitch,
    high: Pitch,
    steps_per_octave: int = TET,
    sorted: bool = False,
) -> t.List[int]:
    """Bounds are inclusive.

    >>> get_all_in_range(60, low=58, high=72)
    [60, 72]
    >>> get_all_in_range(60, low=58, high=59)
    []
    >>> get_all_in_range(58, low=58, high=85)
    [58, 70, 82]

    If a single pitch-class is passed, the output is always sorted. But with
    multiple pitch-classes we need to add sorted=True if we want the output to
    be in order:
    >>> get_all_in_range([58, 60], low=58, high=83)
    [58, 70, 82, 60, 72]
    >>> get_all_in_range([58, 60], low=58, high=83, sorted=True)
    [58, 60, 70, 72, 82]
    """
    if not isinstance(p, int):
        out = list(
            chain.from_iterable(
                get_all_in_range(pp, low, high, steps_per_octave) for pp in p
            )
        )
        if sorted:
            out.sort()
        return out
    pc = p % steps_per_octave
    low_octave, low_pc = divmod(low, steps_per_octave)
    low_octave += pc < low_pc
    high_octave, high_pc = divmod(high, steps_per_octave)
    high_octave -= pc > high_pc
    return [
        pc + octave * steps_per_octave
        for octave in range(low_octave, high_octave + 1)
    ]


def build_pitch_pool(
    pitches: t.Iterable[Pitch],
    octaves: range = DEFAULT_POOL_OCTAVES,
    low: Pitch = LOW_PITCH,
    high: Pitch = HI_PITCH,
) -> t.List[Pitch]:
    """Replicates each pitch across `octaves` (offsets relative to the pitch
    itself), clipped to [low, high]. The result is sorted and has no
    duplicates.

    >>> pool = build_pitch_pool([48, 52, 55])
    >>> pool[:4], pool[-3:]
    ([24, 28, 31, 36], [96, 100, 103])

    Pitches near the edges of the keyboard are clipped:
    >>> build_pitch_pool([23], octaves=range(-2, 1))
    [23]
    """
    pool = set()
    for p in pitches:
        this_low = max(low, p + octaves.start * TET)
        this_high = min(high, p + (octaves.stop - 1) * TET)
        pool.update(get_all_in_range(p, this_low, this_high))
    return sorted(pool)


def filter_in_range(
    pitches: t.Iterable[Pitch], range_: t.Tuple[Pitch, Pitch]
) -> t.List[Pitch]:
    """
    >>> filter_in_range([36, 48, 60, 72], (48, 60))
    [48, 60]
    """
    low, high = range_
    return [p for p in pitches if low <= p <= high]
