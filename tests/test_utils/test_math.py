import random
from collections import Counter

import numpy as np
import pytest

from dumb_harmonizer.utils.math_ import clamp, softmax, weighted_choice


@pytest.mark.parametrize("temperature", [0.2, 0.5, 1.0, 2.5, 10.0])
def test_softmax(temperature):
    scores = [2.0, 0.0, 0.0, 2.0, 0.0]
    weights = softmax(scores, temperature=temperature)
    assert np.isclose(weights.sum(), 1.0)
    assert weights[0] == weights[3] > weights[1] == weights[2]


def test_softmax_temperature_flattens():
    scores = [2.0, 0.0]
    cold = softmax(scores, temperature=0.5)
    hot = softmax(scores, temperature=2.5)
    assert cold[0] > hot[0] > 0.5


def test_clamp():
    assert clamp(-3, 0, 10) == 0
    assert clamp(13, 0, 10) == 10
    assert clamp(4.5, 0, 10) == 4.5


def test_weighted_choice():
    rng = random.Random(42)
    counts = Counter(
        weighted_choice(["a", "b", "c"], [0.7, 0.3, 0.0], rng) for _ in range(1000)
    )
    assert counts["c"] == 0
    assert counts["a"] > counts["b"] > 0


def test_weighted_choice_zero_weights():
    rng = random.Random(42)
    counts = Counter(weighted_choice(["a", "b"], [0, 0], rng) for _ in range(1000))
    assert set(counts) == {"a", "b"}


def test_weighted_choice_reproducible():
    choices = list(range(10))
    weights = [1.0] * 10
    results = [
        [weighted_choice(choices, weights, rng) for _ in range(20)]
        for rng in (random.Random(7), random.Random(7))
    ]
    assert results[0] == results[1]


def test_weighted_choice_empty():
    with pytest.raises(ValueError):
        weighted_choice([], [])
