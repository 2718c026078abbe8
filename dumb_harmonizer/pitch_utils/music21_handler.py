"""All calls into music21's pitch and scale machinery go through this module.

Voicing code only sees the `TheoryBackend` protocol, so a test can substitute
a fake backend.
"""
import logging
import re
import typing as t
from dataclasses import dataclass

from music21 import pitch as m21_pitch
from music21 import scale as m21_scale
from music21.exceptions21 import Music21Exception

from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.pitch_utils.scale import Key
from dumb_harmonizer.pitch_utils.types import Mode, Pitch, PitchClass, ScaleDegree

LOGGER = logging.getLogger(__name__)

KEY_RE = re.compile(
    r"^\s*(?P<letter>[A-Ga-g])(?P<accidental>#|b)?\s*"
    r"(?P<mode>m|min|minor|M|maj|major)?\s*$"
)

MINOR_MODE_STRINGS = ("m", "min", "minor")

PITCH_NAME_RE = re.compile(
    r"^(?P<step>[A-Ga-g])(?P<accidental>#*|b*)(?P<octave>-?\d+)?$"
)


def to_music21_name(name: str) -> str:
    """
    >>> to_music21_name("Bb3")
    'B-3'
    >>> to_music21_name("bb")
    'b-'
    >>> to_music21_name("F#4")
    'F#4'
    """
    return name[:1] + name[1:].replace("b", "-")


def from_music21_name(name: str) -> str:
    """
    >>> from_music21_name("E-4")
    'Eb4'
    >>> from_music21_name("B--")
    'Bbb'
    """
    return name.replace("-", "b")


@dataclass(frozen=True)
class PitchDetails:
    letter: str
    accidental: int
    octave: int


class TheoryBackend(t.Protocol):
    def parse_key(self, key_str: str) -> Key:
        ...

    def chord_pitch_classes(
        self, key: Key, degree: ScaleDegree
    ) -> t.Tuple[PitchClass, ...]:
        ...

    def diatonic_triad(
        self, key: Key, degree: ScaleDegree
    ) -> t.Tuple[str, t.Tuple[PitchClass, ...]]:
        ...

    def transpose(self, name: str, interval: str) -> str:
        ...

    def pitch_to_name(self, pitch: Pitch) -> str | None:
        ...

    def name_to_pitch(self, name: str) -> Pitch | None:
        ...

    def name_to_details(self, name: str) -> PitchDetails | None:
        ...


class Music21Backend:
    """
    >>> backend = Music21Backend()
    >>> key = backend.parse_key("Gm")
    >>> key.scale_names
    ('G', 'A', 'Bb', 'C', 'D', 'Eb', 'F')
    >>> key.harmonic_names[6]
    'F#'
    >>> backend.chord_pitch_classes(key, 4)
    (2, 6, 9)
    >>> backend.transpose("Bb2", "M3")
    'D3'
    >>> backend.pitch_to_name(61)
    'C#4'
    >>> backend.pitch_to_name(1)
    'C#-1'
    >>> backend.name_to_pitch("Eb4")
    63
    >>> backend.name_to_details("Bb3")
    PitchDetails(letter='B', accidental=-1, octave=3)
    >>> backend.name_to_details("H3") is None
    True
    """

    def parse_key(self, key_str: str) -> Key:
        m = KEY_RE.match(key_str) if isinstance(key_str, str) else None
        if m is None:
            raise InvalidInputError(f"Unrecognized key {key_str!r}")
        tonic = m.group("letter").upper() + (m.group("accidental") or "")
        mode = Mode.MINOR if m.group("mode") in MINOR_MODE_STRINGS else Mode.MAJOR
        m21_tonic = to_music21_name(tonic)
        try:
            if mode is Mode.MINOR:
                natural = m21_scale.MinorScale(m21_tonic)
                harmonic = m21_scale.HarmonicMinorScale(m21_tonic)
            else:
                natural = harmonic = m21_scale.MajorScale(m21_tonic)
        except Music21Exception as exc:
            raise InvalidInputError(f"Unrecognized key {key_str!r}") from exc
        scale_pitches = [natural.pitchFromDegree(d) for d in range(1, 8)]
        harmonic_pitches = [harmonic.pitchFromDegree(d) for d in range(1, 8)]
        return Key(
            tonic=tonic,
            mode=mode,
            scale_names=tuple(from_music21_name(p.name) for p in scale_pitches),
            scale_pcs=tuple(p.pitchClass for p in scale_pitches),
            harmonic_names=tuple(from_music21_name(p.name) for p in harmonic_pitches),
            harmonic_pcs=tuple(p.pitchClass for p in harmonic_pitches),
        )

    def chord_pitch_classes(
        self, key: Key, degree: ScaleDegree
    ) -> t.Tuple[PitchClass, ...]:
        return key.triad_pcs(degree)

    def diatonic_triad(
        self, key: Key, degree: ScaleDegree
    ) -> t.Tuple[str, t.Tuple[PitchClass, ...]]:
        """Returns the spelled root and the pitch-classes of the triad."""
        if not 0 <= degree < 7:
            raise InvalidInputError(f"Scale degree {degree} out of range")
        return key.triad_names(degree)[0], key.triad_pcs(degree)

    def transpose(self, name: str, interval: str) -> str:
        p = self._parse(name)
        if p is None:
            raise InvalidInputError(f"Can't parse pitch name {name!r}")
        return self._name(p.transpose(interval))

    def pitch_to_name(self, pitch: Pitch) -> str | None:
        if not 0 <= pitch <= 127:
            return None
        return self._name(m21_pitch.Pitch(midi=pitch))

    @staticmethod
    def _name(p: m21_pitch.Pitch) -> str:
        # octave -1 would otherwise read as a flat
        octave = "" if p.octave is None else str(p.octave)
        return from_music21_name(p.name) + octave

    def _parse(self, name: str) -> m21_pitch.Pitch | None:
        m = PITCH_NAME_RE.match(name)
        if m is None:
            LOGGER.debug(f"Couldn't parse pitch name {name!r}")
            return None
        step_and_accidental = m.group("step") + m.group("accidental")
        try:
            p = m21_pitch.Pitch(to_music21_name(step_and_accidental))
        except (Music21Exception, ValueError) as exc:
            LOGGER.debug(f"Couldn't parse pitch name {name!r}: {exc}")
            return None
        if m.group("octave") is not None:
            p.octave = int(m.group("octave"))
        return p

    def name_to_pitch(self, name: str) -> Pitch | None:
        p = self._parse(name)
        if p is None:
            return None
        return int(p.midi)

    def name_to_details(self, name: str) -> PitchDetails | None:
        p = self._parse(name)
        if p is None:
            return None
        accidental = 0 if p.accidental is None else int(p.accidental.alter)
        octave = p.octave if p.octave is not None else p.implicitOctave
        return PitchDetails(letter=p.step, accidental=accidental, octave=octave)
