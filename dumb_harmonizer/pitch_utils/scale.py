import typing as t
from dataclasses import dataclass

from dumb_harmonizer.pitch_utils.types import Mode, PitchClass, ScaleDegree

# Degrees (0-indexed) whose chords are taken from the harmonic minor scale
#   in minor keys: V and vii
HARMONIC_MINOR_DEGREES = frozenset({4, 6})


@dataclass(frozen=True)
class Key:
    """A tonic and a mode, with the spellings of both scale variants.

    Keys are normally made by `Music21Backend.parse_key()`; constructing one
    directly is mainly useful in tests:

    >>> a_minor = Key(
    ...     tonic="A",
    ...     mode=Mode.MINOR,
    ...     scale_names=("A", "B", "C", "D", "E", "F", "G"),
    ...     scale_pcs=(9, 11, 0, 2, 4, 5, 7),
    ...     harmonic_names=("A", "B", "C", "D", "E", "F", "G#"),
    ...     harmonic_pcs=(9, 11, 0, 2, 4, 5, 8),
    ... )
    >>> a_minor.triad_names(4)
    ('E', 'G#', 'B')
    >>> a_minor.triad_names(2)
    ('C', 'E', 'G')
    >>> a_minor.leading_tone_pc
    8
    >>> a_minor.tonic_pc
    9
    """

    tonic: str
    mode: Mode
    scale_names: t.Tuple[str, ...]
    scale_pcs: t.Tuple[PitchClass, ...]
    harmonic_names: t.Tuple[str, ...]
    harmonic_pcs: t.Tuple[PitchClass, ...]

    def __post_init__(self):
        for seq in (
            self.scale_names,
            self.scale_pcs,
            self.harmonic_names,
            self.harmonic_pcs,
        ):
            assert len(seq) == 7

    @property
    def tonic_pc(self) -> PitchClass:
        return self.scale_pcs[0]

    @property
    def is_minor(self) -> bool:
        return self.mode is Mode.MINOR

    @property
    def leading_tone_pc(self) -> PitchClass:
        return self.harmonic_pcs[6]

    def _scale_for_degree(self, degree: ScaleDegree):
        if self.is_minor and degree in HARMONIC_MINOR_DEGREES:
            return self.harmonic_names, self.harmonic_pcs
        return self.scale_names, self.scale_pcs

    def triad_names(self, degree: ScaleDegree) -> t.Tuple[str, str, str]:
        """Root, third, and fifth of the diatonic triad on `degree` (0-6)."""
        names, _ = self._scale_for_degree(degree)
        return (names[degree], names[(degree + 2) % 7], names[(degree + 4) % 7])

    def triad_pcs(self, degree: ScaleDegree) -> t.Tuple[PitchClass, ...]:
        _, pcs = self._scale_for_degree(degree)
        return (pcs[degree], pcs[(degree + 2) % 7], pcs[(degree + 4) % 7])

    def pcs_for_degree(self, degree: ScaleDegree) -> t.FrozenSet[PitchClass]:
        """The scale that chords on `degree` are drawn from.

        >>> c_major = Key(
        ...     "C", Mode.MAJOR, ("C", "D", "E", "F", "G", "A", "B"),
        ...     (0, 2, 4, 5, 7, 9, 11), ("C", "D", "E", "F", "G", "A", "B"),
        ...     (0, 2, 4, 5, 7, 9, 11)
        ... )
        >>> sorted(c_major.pcs_for_degree(4))
        [0, 2, 4, 5, 7, 9, 11]
        """
        _, pcs = self._scale_for_degree(degree)
        return frozenset(pcs)

    def __str__(self):
        return self.tonic + ("m" if self.is_minor else "")
