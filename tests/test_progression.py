import random

import pytest

from dumb_harmonizer.errors import GenerationError
from dumb_harmonizer.pitch_utils.chords import ChordResolver
from dumb_harmonizer.progression import (
    COMPLEX_CHORDS,
    PRIMARY_CHORDS,
    SECONDARY_CHORDS,
    allowed_chords,
    chord_function,
    draft_progression,
)


@pytest.fixture(scope="module")
def resolver():
    return ChordResolver()


@pytest.mark.parametrize("harmonic_complexity", range(11))
def test_draft_progression(harmonic_complexity, n_seeds):
    for seed in range(n_seeds):
        rng = random.Random(seed)
        for n_measures in range(1, 12):
            progression = draft_progression(n_measures, harmonic_complexity, rng)
            assert len(progression) == n_measures
            assert progression[-1] == "I"
            if n_measures > 2:
                assert progression[0] == "I"
            if n_measures > 1:
                assert chord_function(progression[-2]) in ("V", "IV")
            functions = [chord_function(token) for token in progression]
            for prev, cur in zip(functions, functions[1:]):
                assert prev != cur


def test_complexity_limits_vocabulary(n_seeds):
    simple = set(PRIMARY_CHORDS)
    for seed in range(n_seeds):
        progression = draft_progression(12, 0, random.Random(seed))
        assert set(progression) <= simple
    allowed = set(PRIMARY_CHORDS + SECONDARY_CHORDS + COMPLEX_CHORDS) | {"vii°7"}
    for seed in range(n_seeds):
        progression = draft_progression(12, 10, random.Random(seed))
        assert set(progression) <= allowed
        # dominants always have sevenths at high complexity
        assert "V" not in progression


def test_allowed_chords_grow_with_complexity():
    sizes = [len(allowed_chords(c)) for c in range(11)]
    assert sizes == sorted(sizes)
    assert sizes[0] < sizes[-1]


@pytest.mark.parametrize("mode,key", [("major", "D"), ("minor", "Dm")])
def test_drafted_progressions_resolve(resolver, mode, key, n_seeds):
    for seed in range(n_seeds):
        rng = random.Random(seed)
        for harmonic_complexity in (0, 5, 10):
            progression = draft_progression(8, harmonic_complexity, rng, mode)
            for token in progression:
                chord = resolver(token, key)
                assert chord.pcs


def test_minor_spelling(n_seeds):
    for seed in range(n_seeds):
        progression = draft_progression(6, 5, random.Random(seed), "minor")
        assert progression[0] == progression[-1] == "i"
        assert not {"I", "ii", "iii", "IV", "vi"} & set(progression)


def test_two_measures():
    assert draft_progression(2, 0, random.Random(0)) in (["V", "I"], ["IV", "I"])


def test_reproducible(seed):
    progressions = [draft_progression(16, 7, random.Random(seed)) for _ in range(2)]
    assert progressions[0] == progressions[1]


def test_bad_number_of_measures():
    with pytest.raises(GenerationError):
        draft_progression(0)
    with pytest.raises(GenerationError):
        draft_progression(-4)
