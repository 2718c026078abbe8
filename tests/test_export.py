import random

import pytest
from music21 import converter

from dumb_harmonizer.export import (
    line_groups,
    make_pitch,
    spelling_for_measure,
    to_music21_score,
    write_musicxml,
)
from dumb_harmonizer.harmonizer import Harmonizer, HarmonizerSettings
from dumb_harmonizer.pitch_utils.types import GenerationStyle
from tests.test_helpers import TEST_OUT_DIR, get_funcname


def harmonized(progression, key, meter, style=GenerationStyle.SATB, seed=0):
    settings = HarmonizerSettings(generation_style=style, rhythmic_complexity=5)
    return Harmonizer(settings, rng=random.Random(seed))(progression, key, meter)


@pytest.mark.parametrize(
    "pitch,spelling,expected",
    [
        (70, {10: "Bb"}, "B-4"),
        (58, {10: "A#"}, "A#3"),
        (59, {11: "Cb"}, "C-4"),
        (72, {0: "B#"}, "B#4"),
        (61, {}, "C#4"),
    ],
)
def test_make_pitch(pitch, spelling, expected):
    m21_pitch = make_pitch(pitch, spelling)
    assert m21_pitch.midi == pitch
    assert m21_pitch.nameWithOctave == expected


def test_spelling_for_measure():
    piece = harmonized(["I", "V7"], "Eb", "4/4")
    assert spelling_for_measure(piece.measures[0]) == {3: "Eb", 7: "G", 10: "Bb"}
    assert spelling_for_measure(piece.measures[1]) == {
        10: "Bb",
        2: "D",
        5: "F",
        8: "Ab",
    }


def test_line_groups():
    piece = harmonized(["I"], "C", "4/4")
    measure = piece.measures[0]
    for staff in (1, 2):
        groups = line_groups(measure, staff, staff)
        assert sum(duration for duration, _ in groups) == 32
        assert all(len(pitches) == 2 for _, pitches in groups)


@pytest.mark.parametrize("style", list(GenerationStyle))
@pytest.mark.parametrize("meter", ["4/4", "3/4", "6/8"])
def test_to_music21_score(style, meter):
    progression = ["I", "IV", "XYZ", "V", "I"]
    piece = harmonized(progression, "Bb", meter, style)
    score = to_music21_score(piece)
    assert len(score.parts) == 2
    bar_quarters = float(piece.meter.bar_dur * 4)
    for part in score.parts:
        measures = part.getElementsByClass("Measure")
        assert len(measures) == len(progression)
        for measure in measures:
            assert measure.duration.quarterLength == bar_quarters
        unresolved = measures[2].notesAndRests
        assert len(unresolved) == 1 and unresolved[0].isRest
    # the chords of Bb major I, IV, and V need no sharps
    assert {p.name for p in score.pitches} <= {"B-", "C", "D", "E-", "F", "G", "A"}
    lower = score.parts[1].getElementsByClass("Measure")
    assert [m.notesAndRests[0].lyric for m in lower] == progression


def test_write_musicxml(tmp_path):
    piece = harmonized(["i", "iv", "V7", "i"], "F#m", "3/4")
    path = write_musicxml(piece, tmp_path / "out.musicxml")
    assert path.exists()
    score = converter.parse(str(path))
    assert len(score.parts) == 2
    assert len(score.parts[0].getElementsByClass("Measure")) == 4
    key = score.parts[0].recurse().getElementsByClass("KeySignature")[0]
    assert key.sharps == 3


def test_write_to_test_out_dir():
    piece = harmonized(
        ["I", "vi", "ii6", "V7", "I"],
        "A",
        "6/8",
        GenerationStyle.MELODY_ACCOMPANIMENT,
    )
    path = write_musicxml(piece, f"{TEST_OUT_DIR}/{get_funcname()}.musicxml")
    assert path.exists()
