import pytest

from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.melody_accompanist import (
    MelodyAccompanist,
    MelodyAccompanistSettings,
)
from dumb_harmonizer.pitch_utils.chords import ChordResolver
from dumb_harmonizer.pitch_utils.put_in_range import build_pitch_pool
from dumb_harmonizer.pitch_utils.types import MelodyAccompanimentVoicing
from dumb_harmonizer.shared_classes import DiagnosticKind, Location

PROGRESSIONS = [
    ("C", ["I", "IV", "V", "I"]),
    ("G", ["I", "vi", "ii", "V7", "I"]),
    ("Dm", ["i", "iv", "V", "VI", "ii°6", "V7", "i"]),
    ("Ab", ["I", "IV6", "V43", "I", "vii°7", "I"]),
]


@pytest.fixture(scope="module")
def resolver():
    return ChordResolver()


def accompany_progression(accompanist, resolver, key, progression):
    previous = None
    out = []
    for i, token in enumerate(progression):
        chord = resolver(token, key)
        voicing, diagnostics = accompanist(
            chord, build_pitch_pool(chord.pitches), previous, Location(i, 0)
        )
        out.append((chord, voicing, diagnostics))
        previous = voicing
    return out


@pytest.mark.parametrize("key,progression", PROGRESSIONS)
@pytest.mark.parametrize("num_voices", [1, 2, 3, 4])
def test_melody_accompaniment_invariants(resolver, key, progression, num_voices):
    settings = MelodyAccompanistSettings(num_accompaniment_voices=num_voices)
    accompanist = MelodyAccompanist(settings)
    for chord, voicing, _ in accompany_progression(
        accompanist, resolver, key, progression
    ):
        assert len(voicing.accompaniment) == num_voices
        melody = voicing.melody
        assert melody is not None
        low, high = settings.ranges.melody
        assert low <= melody <= high
        sounding = voicing.sounding_accompaniment
        assert sounding
        assert list(sounding) == sorted(set(sounding))
        assert max(sounding) < melody
        assert melody - max(sounding) <= settings.spacing.melody_accompaniment
        assert max(sounding) - min(sounding) <= settings.accompaniment_max_span
        low, high = settings.ranges.accompaniment
        assert all(low <= p <= high for p in sounding)
        assert {p % 12 for p in (melody,) + sounding} <= set(chord.pcs)


def test_lowest_accompaniment_is_root(resolver):
    accompanist = MelodyAccompanist()
    for token in ("I", "ii", "IV", "V", "vi"):
        chord = resolver(token, "F")
        voicing, _ = accompanist(chord, build_pitch_pool(chord.pitches))
        assert voicing.lowest_accompaniment % 12 == chord.root_pc


def test_four_voices_cover_chord(resolver):
    settings = MelodyAccompanistSettings(num_accompaniment_voices=4)
    chord = resolver("I", "C")
    voicing, diagnostics = MelodyAccompanist(settings)(
        chord, build_pitch_pool(chord.pitches)
    )
    assert voicing == MelodyAccompanimentVoicing(72, (48, 52, 55, 60))
    assert diagnostics == []


def test_smooth_melody(resolver):
    accompanist = MelodyAccompanist(
        MelodyAccompanistSettings(melodic_smoothness=10)
    )
    results = accompany_progression(
        accompanist, resolver, "C", ["I", "IV", "V", "I", "vi", "ii", "V", "I"]
    )
    for (_, prev, _), (_, cur, _) in zip(results, results[1:]):
        assert abs(prev.melody - cur.melody) <= 7


def test_missing_accompaniment_is_reported(resolver):
    settings = MelodyAccompanistSettings(ranges={"accompaniment": (48, 50)})
    chord = resolver("I", "C")
    voicing, diagnostics = MelodyAccompanist(settings)(
        chord, build_pitch_pool(chord.pitches), location=Location(2, 1)
    )
    assert voicing.accompaniment == (48, None, None)
    assert len(diagnostics) == 1
    assert diagnostics[0].kind is DiagnosticKind.VOICING_INCOMPLETE
    assert diagnostics[0].voices == ("accompaniment",)
    assert diagnostics[0].location == Location(2, 1)


def test_missing_melody_is_reported(resolver):
    settings = MelodyAccompanistSettings(ranges={"melody": (61, 62)})
    chord = resolver("I", "C")
    voicing, diagnostics = MelodyAccompanist(settings)(
        chord, build_pitch_pool(chord.pitches)
    )
    assert voicing.melody is None
    assert [d.voices for d in diagnostics] == [("melody",)]
    assert len(voicing.sounding_accompaniment) == 3


@pytest.mark.parametrize("n_voices", [0, -2, 2.5, "three", True])
def test_bad_number_of_voices(n_voices):
    with pytest.raises(InvalidInputError):
        MelodyAccompanistSettings(num_accompaniment_voices=n_voices)
