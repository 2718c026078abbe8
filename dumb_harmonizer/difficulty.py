import math

from dumb_harmonizer.harmonizer import HarmonizerSettings, enum_from_string
from dumb_harmonizer.pitch_utils.types import GenerationStyle
from dumb_harmonizer.utils.math_ import clamp

DEFAULT_NUM_ACCOMPANIMENT_VOICES = 3


def round_half_up(x: float) -> int:
    """
    >>> round_half_up(4.5), round_half_up(-0.5), round_half_up(2.4)
    (5, 0, 2)
    """
    return math.floor(x + 0.5)


def settings_from_difficulty(
    difficulty: float,
    style: GenerationStyle | str = GenerationStyle.SATB,
    **kwargs,
) -> HarmonizerSettings:
    """Maps a single 0-10 difficulty onto the harmonizer settings.

    Harder pieces have busier rhythms, less smooth voice-leading, and fewer
    voice-leading checks.

    >>> settings = settings_from_difficulty(5)
    >>> settings.rhythmic_complexity, settings.melodic_smoothness
    (6, 5)
    >>> settings.dissonance_strictness, settings.harmonic_complexity
    (6.0, 6)

    Out-of-range difficulties are clamped:
    >>> settings_from_difficulty(15).rhythmic_complexity
    10
    >>> settings_from_difficulty(-3).melodic_smoothness
    10

    Other settings can be passed through:
    >>> settings = settings_from_difficulty(
    ...     2, "MelodyAccompaniment", rhythm_strategy="beat_subdivision"
    ... )
    >>> settings.rhythm_strategy
    <RhythmStrategy.BEAT_SUBDIVISION: 'beat_subdivision'>
    """
    level = clamp(round_half_up(difficulty), 0, 10)
    settings = {
        "generation_style": enum_from_string(GenerationStyle, style),
        "rhythmic_complexity": min(10, round_half_up(level * 1.1)),
        "melodic_smoothness": 10 - level,
        "dissonance_strictness": 10 - level * 0.8,
        "harmonic_complexity": min(10, round_half_up(3 + level * 0.5)),
        "num_accompaniment_voices": DEFAULT_NUM_ACCOMPANIMENT_VOICES,
    }
    settings.update(kwargs)
    return HarmonizerSettings(**settings)
