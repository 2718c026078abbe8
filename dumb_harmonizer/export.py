"""Writes a `HarmonizedPiece` as a two-staff music21 score."""
import logging
import typing as t
from pathlib import Path

from music21 import chord as m21_chord
from music21 import clef as m21_clef
from music21 import key as m21_key
from music21 import meter as m21_meter
from music21 import note as m21_note
from music21 import pitch as m21_pitch
from music21 import stream

from dumb_harmonizer.pitch_utils.music21_handler import to_music21_name
from dumb_harmonizer.pitch_utils.types import Mode, Pitch, PitchClass, Ticks
from dumb_harmonizer.shared_classes import HarmonizedPiece, Measure
from dumb_harmonizer.time import ticks_to_quarters

LOGGER = logging.getLogger(__name__)

# (staff, voice, clef, part name)
STAVES = ((1, 1, m21_clef.TrebleClef, "Upper"), (2, 2, m21_clef.BassClef, "Lower"))


def spelling_for_measure(measure: Measure) -> t.Dict[PitchClass, str]:
    """Maps each pitch-class of the measure's chord to its spelling."""
    if measure.chord is None:
        return {}
    return {
        pitch % 12: name.rstrip("-0123456789")
        for pitch, name in zip(measure.chord.pitches, measure.chord.pitch_names)
    }


def make_pitch(pitch: Pitch, spelling: t.Mapping[PitchClass, str]) -> m21_pitch.Pitch:
    """
    >>> make_pitch(70, {10: "Bb"}).nameWithOctave
    'B-4'
    >>> make_pitch(70, {}).midi
    70
    """
    if pitch % 12 not in spelling:
        return m21_pitch.Pitch(midi=pitch)
    out = m21_pitch.Pitch(to_music21_name(spelling[pitch % 12]))
    out.octave = 4
    out.octave += (pitch - out.midi) // 12
    return out


def line_groups(
    measure: Measure, staff: int, voice: int
) -> t.List[t.Tuple[Ticks, t.List[Pitch]]]:
    """Groups one line's events into (duration, pitches) pairs; chord
    continuations are merged into the preceding event.
    """
    groups: t.List[t.Tuple[Ticks, t.List[Pitch]]] = []
    for event in measure.events:
        if (event.staff, event.voice) != (staff, voice):
            continue
        if event.is_chord_continuation:
            assert groups and event.pitch is not None
            groups[-1][1].append(event.pitch)
        else:
            pitches = [] if event.pitch is None else [event.pitch]
            groups.append((event.duration, pitches))
    return groups


def _m21_measure(measure: Measure, staff: int, voice: int) -> stream.Measure:
    out = stream.Measure(number=measure.number)
    spelling = spelling_for_measure(measure)
    for i, (duration, pitches) in enumerate(line_groups(measure, staff, voice)):
        quarter_length = ticks_to_quarters(duration)
        if not pitches:
            element = m21_note.Rest(quarterLength=quarter_length)
        elif len(pitches) == 1:
            element = m21_note.Note(
                make_pitch(pitches[0], spelling), quarterLength=quarter_length
            )
        else:
            element = m21_chord.Chord(
                [make_pitch(p, spelling) for p in pitches],
                quarterLength=quarter_length,
            )
        if i == 0 and staff == STAVES[-1][0]:
            element.lyric = measure.roman_numeral
        out.append(element)
    return out


def to_music21_score(piece: HarmonizedPiece) -> stream.Score:
    """
    >>> from dumb_harmonizer.harmonizer import Harmonizer
    >>> import random
    >>> piece = Harmonizer(rng=random.Random(1))(["I", "V", "I"], "F", "3/4")
    >>> score = to_music21_score(piece)
    >>> len(score.parts), len(score.parts[0].getElementsByClass("Measure"))
    (2, 3)
    """
    score = stream.Score()
    mode = "minor" if piece.key.mode is Mode.MINOR else "major"
    for staff, voice, clef_cls, name in STAVES:
        part = stream.Part(id=name)
        part.partName = name
        for measure_i, measure in enumerate(piece.measures):
            m21_measure = _m21_measure(measure, staff, voice)
            if measure_i == 0:
                m21_measure.insert(0, clef_cls())
                tonic = to_music21_name(piece.key.tonic)
                m21_measure.insert(0, m21_key.Key(tonic, mode))
                m21_measure.insert(0, m21_meter.TimeSignature(str(piece.meter)))
            part.append(m21_measure)
        score.insert(0, part)
    return score


def write_musicxml(piece: HarmonizedPiece, path: str | Path) -> Path:
    score = to_music21_score(piece)
    LOGGER.info(f"Writing {path}")
    return Path(score.write("musicxml", fp=path))
