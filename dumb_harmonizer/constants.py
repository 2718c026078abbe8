from fractions import Fraction
from types import MappingProxyType

TIME_TYPE = Fraction
TET = 12

LOW_PITCH = 21
HI_PITCH = 108

# Ticks per quarter note. A 32nd note is one tick.
DIVISIONS = 8
WHOLE_NOTE_TICKS = DIVISIONS * 4

DEFAULT_SOPRANO_RANGE = (60, 81)
DEFAULT_ALTO_RANGE = (55, 74)
DEFAULT_TENOR_RANGE = (48, 69)
DEFAULT_BASS_RANGE = (40, 62)
DEFAULT_MEL_RANGE = (60, 84)
DEFAULT_ACCOMP_RANGE = (36, 72)

DEFAULT_SOPRANO_ALTO_SPACING = 12
DEFAULT_ALTO_TENOR_SPACING = 12
DEFAULT_TENOR_BASS_SPACING = 19
DEFAULT_MEL_ACCOMP_SPACING = 24

# Window within which the root of a resolved chord is placed.
ROOT_OCTAVE_WINDOW = (36, 72)

SUPPORTED_BEAT_UNITS = (1, 2, 4, 8, 16, 32)

NOTE_VALUES = MappingProxyType(
    {
        1: Fraction(1, 1),
        2: Fraction(1, 2),
        4: Fraction(1, 4),
        8: Fraction(1, 8),
        16: Fraction(1, 16),
        32: Fraction(1, 32),
    }
)
