import typing as t
from dataclasses import dataclass

from dumb_harmonizer.constants import (
    DEFAULT_ACCOMP_RANGE,
    DEFAULT_ALTO_RANGE,
    DEFAULT_ALTO_TENOR_SPACING,
    DEFAULT_BASS_RANGE,
    DEFAULT_MEL_ACCOMP_SPACING,
    DEFAULT_MEL_RANGE,
    DEFAULT_SOPRANO_ALTO_SPACING,
    DEFAULT_SOPRANO_RANGE,
    DEFAULT_TENOR_BASS_SPACING,
    DEFAULT_TENOR_RANGE,
)
from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.pitch_utils.types import ChromaticInterval, Pitch

PitchRange = t.Tuple[Pitch, Pitch]


@dataclass
class VoiceRanges:
    """Inclusive (low, high) bounds for each voice.

    >>> VoiceRanges().bass
    (40, 62)
    >>> VoiceRanges(tenor=(50, 48))
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: tenor range (50, 48) is empty
    """

    soprano: PitchRange = DEFAULT_SOPRANO_RANGE
    alto: PitchRange = DEFAULT_ALTO_RANGE
    tenor: PitchRange = DEFAULT_TENOR_RANGE
    bass: PitchRange = DEFAULT_BASS_RANGE
    melody: PitchRange = DEFAULT_MEL_RANGE
    accompaniment: PitchRange = DEFAULT_ACCOMP_RANGE

    def __post_init__(self):
        for name in ("soprano", "alto", "tenor", "bass", "melody", "accompaniment"):
            # ranges read from yaml arrive as lists
            range_ = tuple(getattr(self, name))
            setattr(self, name, range_)
            if len(range_) != 2 or range_[0] > range_[1]:
                raise InvalidInputError(f"{name} range {range_} is empty")


@dataclass
class SpacingConstraints:
    """Maximum intervals between adjacent voices.

    Pitches are always given from lowest to highest, so for four-part chords
    the limits are, in order, tenor-bass, alto-tenor, and soprano-alto:

    >>> validate_spacing([48, 64, 67, 76], SpacingConstraints())
    True
    >>> validate_spacing([40, 64, 67, 76], SpacingConstraints())
    False
    >>> spacing_violations([40, 64, 67, 84], SpacingConstraints())
    [(0, 1, 24, 19), (2, 3, 17, 12)]

    Voices that weren't placed (None) are skipped:
    >>> validate_spacing([48, None, 67, 76], SpacingConstraints())
    True
    """

    soprano_alto: ChromaticInterval = DEFAULT_SOPRANO_ALTO_SPACING
    alto_tenor: ChromaticInterval = DEFAULT_ALTO_TENOR_SPACING
    tenor_bass: ChromaticInterval = DEFAULT_TENOR_BASS_SPACING
    melody_accompaniment: ChromaticInterval = DEFAULT_MEL_ACCOMP_SPACING

    @property
    def satb_limits(self) -> t.Tuple[ChromaticInterval, ...]:
        return (self.tenor_bass, self.alto_tenor, self.soprano_alto)


def spacing_violations(
    pitches: t.Sequence[Pitch | None], constraints: SpacingConstraints
) -> t.List[t.Tuple[int, int, ChromaticInterval, ChromaticInterval]]:
    """Returns (lower index, upper index, interval, limit) for each adjacent
    pair of four-part pitches that is too widely spaced.
    """
    out = []
    for i, limit in enumerate(constraints.satb_limits):
        lower, upper = pitches[i], pitches[i + 1]
        if lower is None or upper is None:
            continue
        if upper - lower > limit:
            out.append((i, i + 1, upper - lower, limit))
    return out


def validate_spacing(
    spacing: t.Sequence[Pitch | None], constraints: SpacingConstraints
) -> bool:
    return not spacing_violations(spacing, constraints)
