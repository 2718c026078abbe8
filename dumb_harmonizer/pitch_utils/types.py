import typing as t
from dataclasses import dataclass
from enum import Enum, auto
from fractions import Fraction

TIME_TYPE = Fraction
Pitch = int
PitchClass = int
PitchOrPitchClass = int
ChromaticInterval = int
ScaleDegree = int
TimeStamp = TIME_TYPE
Ticks = int
RNToken = str

# 'ChordFactor' gives the index of each chord member in root position:
#   0 root, 1 third, 2 fifth, 3 seventh
ChordFactor = int


class Mode(Enum):
    MAJOR = "major"
    MINOR = "minor"


class ChordQuality(Enum):
    MAJOR = "M"
    MINOR = "m"
    DIMINISHED = "dim"
    AUGMENTED = "aug"


class SeventhKind(Enum):
    MAJOR = "maj7"
    MINOR = "m7"
    DOMINANT = "7"
    HALF_DIMINISHED = "m7b5"
    DIMINISHED = "dim7"
    AUGMENTED = "aug7"


class SeventhRequest(Enum):
    # "7" with no further qualification: the seventh is looked up
    INFER = auto()
    HALF_DIMINISHED = auto()
    DIMINISHED = auto()


class GenerationStyle(Enum):
    SATB = "SATB"
    MELODY_ACCOMPANIMENT = "MelodyAccompaniment"


@dataclass(frozen=True)
class SATBVoicing:
    """The pitches sounding in each voice of a four-part chord.

    A voice that could not be placed is None.

    >>> voicing = SATBVoicing(soprano=72, alto=67, tenor=64, bass=48)
    >>> voicing.pitches
    (72, 67, 64, 48)
    >>> voicing.is_complete
    True
    >>> SATBVoicing.empty().is_empty
    True
    """

    soprano: Pitch | None = None
    alto: Pitch | None = None
    tenor: Pitch | None = None
    bass: Pitch | None = None

    @classmethod
    def empty(cls) -> "SATBVoicing":
        return cls()

    @property
    def pitches(self) -> t.Tuple[Pitch | None, ...]:
        """Ordered from highest voice to lowest."""
        return (self.soprano, self.alto, self.tenor, self.bass)

    @property
    def is_complete(self) -> bool:
        return all(p is not None for p in self.pitches)

    @property
    def is_empty(self) -> bool:
        return all(p is None for p in self.pitches)


@dataclass(frozen=True)
class MelodyAccompanimentVoicing:
    """A melody pitch and the accompaniment pitches beneath it.

    Accompaniment pitches are ordered from lowest to highest; any voice
    that could not be placed is None.

    >>> voicing = MelodyAccompanimentVoicing(76, (48, 55, 64))
    >>> voicing.lowest_accompaniment, voicing.highest_accompaniment
    (48, 64)
    >>> MelodyAccompanimentVoicing.empty().is_empty
    True
    """

    melody: Pitch | None = None
    accompaniment: t.Tuple[Pitch | None, ...] = ()

    @classmethod
    def empty(cls) -> "MelodyAccompanimentVoicing":
        return cls()

    @property
    def sounding_accompaniment(self) -> t.Tuple[Pitch, ...]:
        return tuple(p for p in self.accompaniment if p is not None)

    @property
    def lowest_accompaniment(self) -> Pitch | None:
        sounding = self.sounding_accompaniment
        return min(sounding) if sounding else None

    @property
    def highest_accompaniment(self) -> Pitch | None:
        sounding = self.sounding_accompaniment
        return max(sounding) if sounding else None

    @property
    def is_empty(self) -> bool:
        return self.melody is None and not self.sounding_accompaniment

    def previous_accompaniment(self, i: int) -> Pitch | None:
        if i < len(self.accompaniment):
            return self.accompaniment[i]
        return None


AnyVoicing = SATBVoicing | MelodyAccompanimentVoicing


@dataclass
class SettingsBase:
    """Base class for the settings dataclasses that can be read from yaml."""
