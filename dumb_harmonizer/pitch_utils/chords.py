"""Parsing of roman-numeral tokens and their resolution to pitches.

A token like "V65" is parsed once into a `RomanToken`; `ChordResolver` turns
that into a `ResolvedChord` in a given key.

>>> resolver = ChordResolver()
>>> chord = resolver.resolve("ii6", "C")
>>> chord.pitch_names
('D3', 'F3', 'A3')
>>> chord.required_bass_pc
5
>>> resolver.resolve("V7", "Am").pitch_names
('E3', 'G#3', 'B3', 'D4')
"""
import logging
import re
import typing as t
from dataclasses import dataclass
from types import MappingProxyType

from dumb_harmonizer.constants import ROOT_OCTAVE_WINDOW
from dumb_harmonizer.errors import InvalidInputError, MusicTheoryError
from dumb_harmonizer.pitch_utils.aliases import Fifth, Root, Seventh, Third
from dumb_harmonizer.pitch_utils.music21_handler import Music21Backend, TheoryBackend
from dumb_harmonizer.pitch_utils.scale import Key
from dumb_harmonizer.pitch_utils.types import (
    ChordFactor,
    ChordQuality,
    Mode,
    Pitch,
    PitchClass,
    RNToken,
    ScaleDegree,
    SeventhKind,
    SeventhRequest,
)

LOGGER = logging.getLogger(__name__)

ROMAN_RE = re.compile(
    r"^(?P<numeral>[IViv]+)"
    r"(?P<quality>°|o|dim|ø|hd|\+|aug|maj|min|M|m)?"
    r"(?P<seventh>7)?"
    r"(?:(?P<figure>64|65|43|42|6|2)|/(?P<slash>[#b]?\d+))?$"
)

# Matches a numeral followed by digits we don't understand (e.g., "V8")
BAD_FIGURE_RE = re.compile(r"^[IViv]+\d+$")

ROMAN_TO_DEGREE = MappingProxyType(
    {"I": 0, "II": 1, "III": 2, "IV": 3, "V": 4, "VI": 5, "VII": 6}
)

FIGURE_TO_BASS_FACTOR = MappingProxyType(
    {"6": Third, "64": Fifth, "65": Third, "43": Fifth, "42": Seventh, "2": Seventh}
)
SEVENTH_FIGURES = frozenset({"65", "43", "42", "2"})

SLASH_TO_BASS_FACTOR = MappingProxyType({1: Root, 3: Third, 5: Fifth, 7: Seventh})

QUALITY_STRINGS = MappingProxyType(
    {
        "°": ChordQuality.DIMINISHED,
        "o": ChordQuality.DIMINISHED,
        "dim": ChordQuality.DIMINISHED,
        "+": ChordQuality.AUGMENTED,
        "aug": ChordQuality.AUGMENTED,
        "M": ChordQuality.MAJOR,
        "maj": ChordQuality.MAJOR,
        "m": ChordQuality.MINOR,
        "min": ChordQuality.MINOR,
    }
)
HALF_DIMINISHED_STRINGS = ("ø", "hd")

TRIAD_INTERVALS = MappingProxyType(
    {
        ChordQuality.MAJOR: ("P1", "M3", "P5"),
        ChordQuality.MINOR: ("P1", "m3", "P5"),
        ChordQuality.DIMINISHED: ("P1", "m3", "d5"),
        ChordQuality.AUGMENTED: ("P1", "M3", "A5"),
    }
)

# Each seventh chord is the triad it contains plus the interval of its seventh
SEVENTH_CHORDS = MappingProxyType(
    {
        SeventhKind.MAJOR: (ChordQuality.MAJOR, "M7"),
        SeventhKind.DOMINANT: (ChordQuality.MAJOR, "m7"),
        SeventhKind.MINOR: (ChordQuality.MINOR, "m7"),
        SeventhKind.HALF_DIMINISHED: (ChordQuality.DIMINISHED, "m7"),
        SeventhKind.DIMINISHED: (ChordQuality.DIMINISHED, "d7"),
        SeventhKind.AUGMENTED: (ChordQuality.AUGMENTED, "m7"),
    }
)

NATURAL_SEVENTHS = MappingProxyType(
    {
        ChordQuality.MAJOR: SeventhKind.DOMINANT,
        ChordQuality.MINOR: SeventhKind.MINOR,
        ChordQuality.DIMINISHED: SeventhKind.HALF_DIMINISHED,
        ChordQuality.AUGMENTED: SeventhKind.AUGMENTED,
    }
)

DEFAULT_SEVENTHS = MappingProxyType(
    {
        Mode.MAJOR: MappingProxyType(
            {
                0: SeventhKind.MAJOR,
                1: SeventhKind.MINOR,
                2: SeventhKind.MINOR,
                3: SeventhKind.MAJOR,
                4: SeventhKind.DOMINANT,
                5: SeventhKind.MINOR,
                6: SeventhKind.HALF_DIMINISHED,
            }
        ),
        Mode.MINOR: MappingProxyType(
            {
                0: SeventhKind.MINOR,
                1: SeventhKind.HALF_DIMINISHED,
                2: SeventhKind.MAJOR,
                3: SeventhKind.MINOR,
                4: SeventhKind.DOMINANT,
                5: SeventhKind.MAJOR,
                6: SeventhKind.DIMINISHED,
            }
        ),
    }
)

QUALITY_FROM_INTERVALS = MappingProxyType(
    {
        (4, 7): ChordQuality.MAJOR,
        (3, 7): ChordQuality.MINOR,
        (3, 6): ChordQuality.DIMINISHED,
        (4, 8): ChordQuality.AUGMENTED,
    }
)


@dataclass(frozen=True)
class RomanToken:
    token: RNToken
    degree: ScaleDegree
    quality: ChordQuality | None = None
    seventh: SeventhRequest | None = None
    bass_factor: ChordFactor = Root


def parse_roman_numeral(token: RNToken) -> RomanToken:
    """
    >>> parse_roman_numeral("V65")  # doctest: +NORMALIZE_WHITESPACE
    RomanToken(token='V65', degree=4, quality=None,
               seventh=<SeventhRequest.INFER: 1>, bass_factor=1)
    >>> parse_roman_numeral("viio7").seventh
    <SeventhRequest.DIMINISHED: 3>
    >>> parse_roman_numeral("iiø42").bass_factor
    3
    >>> parse_roman_numeral("IV/5").bass_factor
    2
    >>> parse_roman_numeral("bVII")
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: Can't parse roman numeral 'bVII'
    >>> parse_roman_numeral("V8")
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: Unrecognized figure in roman numeral 'V8'
    """
    if not isinstance(token, str):
        raise InvalidInputError(f"Roman numeral must be a string, not {token!r}")
    stripped = token.strip()
    m = ROMAN_RE.match(stripped)
    if m is None:
        if BAD_FIGURE_RE.match(stripped):
            raise InvalidInputError(f"Unrecognized figure in roman numeral {token!r}")
        raise InvalidInputError(f"Can't parse roman numeral {token!r}")

    numeral = m.group("numeral").upper()
    if numeral not in ROMAN_TO_DEGREE:
        raise InvalidInputError(f"Unknown roman numeral {m.group('numeral')!r}")
    degree = ROMAN_TO_DEGREE[numeral]

    quality_str = m.group("quality")
    figure = m.group("figure")
    slash = m.group("slash")
    has_seventh = m.group("seventh") is not None or figure in SEVENTH_FIGURES

    quality = None
    seventh = None
    if quality_str in HALF_DIMINISHED_STRINGS:
        seventh = SeventhRequest.HALF_DIMINISHED
    elif quality_str is not None:
        quality = QUALITY_STRINGS[quality_str]
        if has_seventh and quality is ChordQuality.DIMINISHED:
            seventh = SeventhRequest.DIMINISHED
    if has_seventh and seventh is None:
        seventh = SeventhRequest.INFER

    if figure is not None:
        bass_factor = FIGURE_TO_BASS_FACTOR[figure]
    elif slash is not None:
        # accidentals in slash intervals are accepted but the bass is always
        #   taken from the chord itself
        interval = int(slash.lstrip("#b"))
        if interval not in SLASH_TO_BASS_FACTOR:
            raise InvalidInputError(
                f"Unsupported bass interval {slash!r} in roman numeral {token!r}"
            )
        bass_factor = SLASH_TO_BASS_FACTOR[interval]
    else:
        bass_factor = Root

    return RomanToken(
        token=stripped,
        degree=degree,
        quality=quality,
        seventh=seventh,
        bass_factor=bass_factor,
    )


@dataclass(frozen=True)
class ResolvedChord:
    """A chord in root position within a single octave (or a little more,
    in the case of seventh chords).

    >>> chord = ChordResolver().resolve("V43", "F")
    >>> chord.pitches
    (48, 52, 55, 58)
    >>> chord.pcs
    (0, 4, 7, 10)
    >>> chord.required_bass_pc
    7
    >>> chord.factor_pc(Seventh)
    10
    """

    token: RNToken
    key: Key
    quality: ChordQuality
    seventh: SeventhKind | None
    pitches: t.Tuple[Pitch, ...]
    pitch_names: t.Tuple[str, ...]
    required_bass_pc: PitchClass | None = None

    def __post_init__(self):
        assert len(self.pitches) == len(self.pitch_names)
        assert self.required_bass_pc is None or self.required_bass_pc in self.pcs

    @property
    def root(self) -> Pitch:
        return self.pitches[0]

    @property
    def root_pc(self) -> PitchClass:
        return self.pitches[0] % 12

    @property
    def pcs(self) -> t.Tuple[PitchClass, ...]:
        return tuple(p % 12 for p in self.pitches)

    @property
    def bass_pc(self) -> PitchClass:
        if self.required_bass_pc is not None:
            return self.required_bass_pc
        return self.root_pc

    def factor_pc(self, factor: ChordFactor) -> PitchClass | None:
        if factor < len(self.pitches):
            return self.pitches[factor] % 12
        return None


def guess_root_octave(root_name: str) -> int:
    """
    >>> guess_root_octave("C"), guess_root_octave("Eb"), guess_root_octave("F#")
    (3, 3, 2)
    """
    return 2 if root_name[0].upper() in "FGAB" else 3


class ChordResolver:
    def __init__(self, backend: TheoryBackend | None = None):
        self._backend = Music21Backend() if backend is None else backend

    @property
    def backend(self) -> TheoryBackend:
        return self._backend

    def _key(self, key: Key | str) -> Key:
        if isinstance(key, Key):
            return key
        return self._backend.parse_key(key)

    def _choose_seventh(
        self, parsed: RomanToken, key: Key, triad_quality: ChordQuality
    ) -> SeventhKind:
        if parsed.seventh is SeventhRequest.HALF_DIMINISHED:
            return SeventhKind.HALF_DIMINISHED
        if parsed.seventh is SeventhRequest.DIMINISHED:
            return SeventhKind.DIMINISHED
        from_table = DEFAULT_SEVENTHS[key.mode].get(parsed.degree)
        if from_table is not None and SEVENTH_CHORDS[from_table][0] is triad_quality:
            return from_table
        return NATURAL_SEVENTHS[triad_quality]

    def _place_root(self, root_name: str) -> str:
        octave = guess_root_octave(root_name)
        pitch = self._backend.name_to_pitch(f"{root_name}{octave}")
        if pitch is None:
            raise MusicTheoryError(f"Can't place chord root {root_name!r}")
        low, high = ROOT_OCTAVE_WINDOW
        if pitch < low:
            octave += 1
        elif pitch > high and pitch - 12 >= low:
            octave -= 1
        return f"{root_name}{octave}"

    def resolve(self, token: RNToken | RomanToken, key: Key | str) -> ResolvedChord:
        """
        Raises InvalidInputError if the token or the key is malformed, and
        MusicTheoryError if the token can't be realized as a chord.

        >>> resolver = ChordResolver()
        >>> resolver.resolve("viiø7", "C").pitch_names
        ('B2', 'D3', 'F3', 'A3')
        >>> resolver.resolve("III+", "Am").pitch_names
        ('C3', 'E3', 'G#3')
        >>> resolver.resolve("V/7", "C")
        Traceback (most recent call last):
        dumb_harmonizer.errors.MusicTheoryError: 'V/7' has no chord factor 3 for the bass
        """
        key = self._key(key)
        parsed = token if isinstance(token, RomanToken) else parse_roman_numeral(token)

        root_name, triad_pcs = self._backend.diatonic_triad(key, parsed.degree)
        intervals_above_root = (
            (triad_pcs[1] - triad_pcs[0]) % 12,
            (triad_pcs[2] - triad_pcs[0]) % 12,
        )
        if intervals_above_root not in QUALITY_FROM_INTERVALS:
            raise MusicTheoryError(
                f"Diatonic triad on degree {parsed.degree} of {key} isn't tertian"
            )
        quality = QUALITY_FROM_INTERVALS[intervals_above_root]
        if parsed.quality is not None:
            quality = parsed.quality

        seventh = None
        if parsed.seventh is not None:
            seventh = self._choose_seventh(parsed, key, quality)
            quality, seventh_interval = SEVENTH_CHORDS[seventh]
            intervals = TRIAD_INTERVALS[quality] + (seventh_interval,)
        else:
            intervals = TRIAD_INTERVALS[quality]

        rooted_name = self._place_root(root_name)
        try:
            names = tuple(self._backend.transpose(rooted_name, i) for i in intervals)
        except Exception as exc:
            raise MusicTheoryError(
                f"Can't build {intervals} above {rooted_name}: {exc}"
            ) from exc
        pitches = []
        for name in names:
            pitch = self._backend.name_to_pitch(name)
            if pitch is None:
                raise MusicTheoryError(f"Can't convert {name!r} to a pitch")
            pitches.append(pitch)

        required_bass_pc = None
        if parsed.bass_factor != Root:
            if parsed.bass_factor >= len(pitches):
                raise MusicTheoryError(
                    f"{parsed.token!r} has no chord factor {parsed.bass_factor} "
                    "for the bass"
                )
            required_bass_pc = pitches[parsed.bass_factor] % 12

        LOGGER.debug(f"Resolved {parsed.token} in {key} to {names}")
        return ResolvedChord(
            token=parsed.token,
            key=key,
            quality=quality,
            seventh=seventh,
            pitches=tuple(pitches),
            pitch_names=names,
            required_bass_pc=required_bass_pc,
        )

    __call__ = resolve


def resolve_chord(
    token: RNToken, key: Key | str, backend: TheoryBackend | None = None
) -> ResolvedChord:
    return ChordResolver(backend).resolve(token, key)
