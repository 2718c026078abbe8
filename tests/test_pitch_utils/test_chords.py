import pytest

from dumb_harmonizer.errors import InvalidInputError, MusicTheoryError
from dumb_harmonizer.pitch_utils.aliases import Fifth, Root, Seventh, Third
from dumb_harmonizer.pitch_utils.chords import (
    ChordResolver,
    parse_roman_numeral,
    resolve_chord,
)
from dumb_harmonizer.pitch_utils.music21_handler import Music21Backend
from dumb_harmonizer.pitch_utils.put_in_range import build_pitch_pool
from dumb_harmonizer.pitch_utils.types import ChordQuality, SeventhKind, SeventhRequest

MAJOR_KEYS = ("C", "G", "D", "A", "E", "B", "F#", "F", "Bb", "Eb", "Ab", "Db")
MINOR_KEYS = ("Am", "Em", "Bm", "F#m", "C#m", "G#m", "Dm", "Gm", "Cm", "Fm", "Bbm")
NUMERALS = ("I", "II", "III", "IV", "V", "VI", "VII")


@pytest.fixture(scope="module")
def resolver():
    return ChordResolver()


@pytest.mark.parametrize(
    "token,degree,quality,seventh,bass_factor",
    [
        ("I", 0, None, None, Root),
        ("ii6", 1, None, None, Third),
        ("V64", 4, None, None, Fifth),
        ("V7", 4, None, SeventhRequest.INFER, Root),
        ("V65", 4, None, SeventhRequest.INFER, Third),
        ("V43", 4, None, SeventhRequest.INFER, Fifth),
        ("V42", 4, None, SeventhRequest.INFER, Seventh),
        ("V2", 4, None, SeventhRequest.INFER, Seventh),
        ("viiø7", 6, None, SeventhRequest.HALF_DIMINISHED, Root),
        ("viihd65", 6, None, SeventhRequest.HALF_DIMINISHED, Third),
        ("vii°7", 6, ChordQuality.DIMINISHED, SeventhRequest.DIMINISHED, Root),
        ("viio42", 6, ChordQuality.DIMINISHED, SeventhRequest.DIMINISHED, Seventh),
        ("viidim", 6, ChordQuality.DIMINISHED, None, Root),
        ("III+", 2, ChordQuality.AUGMENTED, None, Root),
        ("IIIaug6", 2, ChordQuality.AUGMENTED, None, Third),
        ("IVM7", 3, ChordQuality.MAJOR, SeventhRequest.INFER, Root),
        ("ivmin", 3, ChordQuality.MINOR, None, Root),
        ("V/3", 4, None, None, Third),
        ("V/b7", 4, None, None, Seventh),
        ("IV/#5", 3, None, None, Fifth),
    ],
)
def test_parse_roman_numeral(token, degree, quality, seventh, bass_factor):
    parsed = parse_roman_numeral(token)
    assert parsed.token == token
    assert parsed.degree == degree
    assert parsed.quality == quality
    assert parsed.seventh == seventh
    assert parsed.bass_factor == bass_factor


@pytest.mark.parametrize(
    "token", ["XYZ", "", "V8", "V7x", "IIII", "bVII", "V/9", "V/2", "H", "V65 ", 7]
)
def test_parse_roman_numeral_errors(token):
    if token == "V65 ":
        # surrounding whitespace is tolerated
        assert parse_roman_numeral(token).bass_factor == Third
        return
    with pytest.raises(InvalidInputError):
        parse_roman_numeral(token)


def test_case_doesnt_change_quality(resolver):
    assert resolver("v", "C").pcs == resolver("V", "C").pcs
    assert resolver("II", "C").pcs == resolver("ii", "C").pcs


@pytest.mark.parametrize(
    "token,key,pcs,required_bass_pc",
    [
        ("I", "C", {0, 4, 7}, None),
        # dominant seventh from harmonic minor
        ("V7", "Am", {4, 8, 11, 2}, None),
        ("ii6", "C", {2, 5, 9}, 5),
        ("V65", "C", {7, 11, 2, 5}, 11),
        ("V42", "G", {2, 6, 9, 0}, 0),
        ("I7", "C", {0, 4, 7, 11}, None),
        ("ii7", "C", {2, 5, 9, 0}, None),
        ("viio7", "C", {11, 2, 5, 8}, None),
        ("viiø7", "C", {11, 2, 5, 9}, None),
        ("vii°7", "Am", {8, 11, 2, 5}, None),
        ("ii7", "Am", {11, 2, 5, 9}, None),
        ("III", "Am", {0, 4, 7}, None),
        ("iv64", "Cm", {5, 8, 0}, 0),
        ("IV/5", "Bb", {3, 7, 10}, 10),
        ("VIIM", "C", {11, 3, 6}, None),
    ],
)
def test_resolve(resolver, token, key, pcs, required_bass_pc):
    chord = resolver.resolve(token, key)
    assert set(chord.pcs) == pcs
    assert chord.required_bass_pc == required_bass_pc


def test_seventh_follows_altered_triad(resolver):
    # the table gives a major seventh on I, but a minor triad gets a minor 7th
    chord = resolver.resolve("Im7", "C")
    assert chord.quality is ChordQuality.MINOR
    assert chord.seventh is SeventhKind.MINOR
    assert set(chord.pcs) == {0, 3, 7, 10}

    chord = resolver.resolve("III+7", "Am")
    assert chord.seventh is SeventhKind.AUGMENTED


@pytest.mark.parametrize("key", ["Bb", "Ebm", "F#"])
def test_spelling(resolver, key):
    chord = resolver.resolve("V7", key)
    backend = Music21Backend()
    letters = [backend.name_to_details(name).letter for name in chord.pitch_names]
    # chords are spelled in thirds
    assert len(set(letters)) == 4
    assert [backend.name_to_pitch(n) for n in chord.pitch_names] == list(chord.pitches)


@pytest.mark.parametrize("key", MAJOR_KEYS + MINOR_KEYS)
@pytest.mark.parametrize("numeral", NUMERALS)
@pytest.mark.parametrize("seventh", ["", "7"])
def test_chords_are_diatonic(resolver, key, numeral, seventh):
    chord = resolver.resolve(numeral + seventh, key)
    degree = NUMERALS.index(numeral)
    assert set(chord.pcs) <= chord.key.pcs_for_degree(degree)
    assert 36 <= chord.root <= 72
    assert list(chord.pitches) == sorted(chord.pitches)
    assert chord.pitches[-1] - chord.pitches[0] < 12


@pytest.mark.parametrize("key", MAJOR_KEYS[:4] + MINOR_KEYS[:4])
@pytest.mark.parametrize(
    "token", ["I6", "ii65", "IV64", "V43", "V42", "vi/3", "viio6", "V7/5"]
)
def test_required_bass_pc_in_chord(resolver, key, token):
    chord = resolver.resolve(token, key)
    assert chord.required_bass_pc is not None
    assert chord.required_bass_pc in chord.pcs
    assert chord.bass_pc == chord.required_bass_pc


@pytest.mark.parametrize("token", ["I", "V7", "ii6", "viio7", "IV64"])
def test_pool_contains_chord_tones(resolver, token):
    chord = resolver.resolve(token, "Eb")
    pool = build_pitch_pool(chord.pitches)
    assert set(chord.pitches) <= set(pool)
    assert {p % 12 for p in pool} == set(chord.pcs)


def test_seventh_in_bass_of_triad(resolver):
    with pytest.raises(MusicTheoryError):
        resolver.resolve("IV/7", "C")


@pytest.mark.parametrize("key", ["H", "C##", "Cmixolydian", "", None])
def test_bad_key(resolver, key):
    with pytest.raises(InvalidInputError):
        resolver.resolve("I", key)


def test_resolve_chord():
    assert resolve_chord("ii6", "C").pitch_names == ("D3", "F3", "A3")
