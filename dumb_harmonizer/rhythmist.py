import logging
import random
import typing as t
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from types import MappingProxyType

import pandas as pd

from dumb_harmonizer.constants import NOTE_VALUES, TIME_TYPE
from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.time import Meter
from dumb_harmonizer.utils.math_ import clamp, weighted_choice

LOGGER = logging.getLogger(__name__)

MIN_COMPLEXITY = 0
MAX_COMPLEXITY = 10

# (highest complexity in tier, {note value denominator: weight})
COMPLEXITY_WEIGHTS: t.Tuple[t.Tuple[int, t.Mapping[int, float]], ...] = (
    (2, MappingProxyType({4: 10, 2: 5, 8: 1})),
    (4, MappingProxyType({4: 10, 8: 8, 2: 3, 16: 1})),
    (6, MappingProxyType({4: 8, 8: 10, 16: 5, 2: 2, 32: 0.5})),
    (8, MappingProxyType({8: 10, 16: 12, 4: 4, 32: 2, 2: 1})),
    (MAX_COMPLEXITY, MappingProxyType({16: 12, 8: 8, 32: 8, 4: 2})),
)


class RhythmStrategy(Enum):
    NOTE_VALUES = "note_values"
    BEAT_SUBDIVISION = "beat_subdivision"


def validate_complexity(complexity) -> int:
    """
    >>> validate_complexity(3)
    3
    >>> validate_complexity(11)
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: Rhythmic complexity must be an integer from 0 to 10, not 11
    """
    if (
        isinstance(complexity, bool)
        or not isinstance(complexity, int)
        or not MIN_COMPLEXITY <= complexity <= MAX_COMPLEXITY
    ):
        raise InvalidInputError(
            f"Rhythmic complexity must be an integer from {MIN_COMPLEXITY} to "
            f"{MAX_COMPLEXITY}, not {complexity!r}"
        )
    return complexity


def weights_for_complexity(complexity: int) -> t.Mapping[int, float]:
    """
    >>> dict(weights_for_complexity(1))
    {4: 10, 2: 5, 8: 1}
    >>> dict(weights_for_complexity(9))
    {16: 12, 8: 8, 32: 8, 4: 2}
    """
    for max_complexity, weights in COMPLEXITY_WEIGHTS:
        if complexity <= max_complexity:
            return weights
    raise ValueError(complexity)


@dataclass(frozen=True)
class RhythmPattern:
    """One measure's worth of rhythmic values.

    >>> pattern = RhythmPattern(
    ...     Meter("3/4"), (Fraction(1, 2), Fraction(1, 8), Fraction(1, 8))
    ... )
    >>> pattern.beat_factors
    (Fraction(2, 1), Fraction(1, 2), Fraction(1, 2))
    >>> pattern.total_dur == pattern.meter.bar_dur
    True
    >>> pattern.to_df()["release"].tolist()
    [Fraction(2, 1), Fraction(5, 2), Fraction(3, 1)]
    """

    meter: Meter
    note_values: t.Tuple[TIME_TYPE, ...]
    complete: bool = True

    @property
    def beat_factors(self) -> t.Tuple[TIME_TYPE, ...]:
        """Each value as a multiple of the beat."""
        return tuple(v / self.meter.beat_dur for v in self.note_values)

    @property
    def total_dur(self) -> TIME_TYPE:
        return sum(self.note_values, TIME_TYPE(0))

    def to_df(self) -> pd.DataFrame:
        """Onsets and releases, in quarter notes from the start of the measure."""
        onsets = []
        releases = []
        onset = TIME_TYPE(0)
        for value in self.note_values:
            onsets.append(onset)
            onset += value * 4
            releases.append(onset)
        return pd.DataFrame({"onset": onsets, "release": releases})


class RhythmistBase:
    def __init__(self, rng: random.Random | None = None):
        self._rng = random.Random() if rng is None else rng

    def __call__(self, meter: Meter, complexity: int) -> RhythmPattern:
        raise NotImplementedError


class WeightedRhythmist(RhythmistBase):
    """Fills a measure with note values chosen by weighted random choice.

    >>> rhythmist = WeightedRhythmist(random.Random(42))
    >>> pattern = rhythmist(Meter("6/8"), complexity=1)
    >>> pattern.total_dur
    Fraction(3, 4)
    >>> pattern.complete
    True
    """

    def __call__(self, meter: Meter, complexity: int) -> RhythmPattern:
        validate_complexity(complexity)
        weights = weights_for_complexity(complexity)
        remaining = meter.bar_dur
        values = []
        complete = True
        while remaining > 0:
            eligible = [
                denominator
                for denominator, value in NOTE_VALUES.items()
                if value <= remaining
            ]
            if not eligible:
                LOGGER.warning(
                    f"No note value fits remaining duration {remaining} in {meter}"
                )
                complete = False
                break
            denominator = weighted_choice(
                eligible, [weights.get(d, 0.0) for d in eligible], self._rng
            )
            value = NOTE_VALUES[denominator]
            values.append(value)
            remaining -= value
        return RhythmPattern(meter, tuple(values), complete)


class BeatSubdivisionRhythmist(RhythmistBase):
    """Keeps each beat whole or splits it in two.

    The chance of splitting a beat is complexity / 10, kept within
    [0.05, 0.95].

    >>> rhythmist = BeatSubdivisionRhythmist(random.Random(42))
    >>> pattern = rhythmist(Meter("3/4"), complexity=5)
    >>> pattern.total_dur
    Fraction(3, 4)
    >>> set(pattern.beat_factors) <= {Fraction(1), Fraction(1, 2)}
    True
    """

    min_subdivision_chance = 0.05
    max_subdivision_chance = 0.95

    def __call__(self, meter: Meter, complexity: int) -> RhythmPattern:
        validate_complexity(complexity)
        chance = clamp(
            complexity / 10,
            self.min_subdivision_chance,
            self.max_subdivision_chance,
        )
        values = []
        half_beat = meter.beat_dur / 2
        for _ in range(meter.n_beats):
            if half_beat >= NOTE_VALUES[32] and self._rng.random() < chance:
                values.extend([half_beat, half_beat])
            else:
                values.append(meter.beat_dur)
        return RhythmPattern(meter, tuple(values))


def get_rhythmist(
    strategy: RhythmStrategy, rng: random.Random | None = None
) -> RhythmistBase:
    if strategy is RhythmStrategy.BEAT_SUBDIVISION:
        return BeatSubdivisionRhythmist(rng)
    return WeightedRhythmist(rng)
