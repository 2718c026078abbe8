import random
import typing as t

import numpy as np

T = t.TypeVar("T")


def softmax(x, temperature=1.0):
    """
    >>> weights = [1 / 2, 2 / 3]
    >>> softmax(weights)
    array([0.45842952, 0.54157048])
    >>> softmax(weights, temperature=5.0)
    array([0.49166744, 0.50833256])
    >>> softmax(weights, temperature=0.2)
    array([0.30294072, 0.69705928])
    """
    exp = np.exp(np.array(x) / temperature)
    return exp / exp.sum()


def clamp(x, low, high):
    """
    >>> clamp(0.0, 0.05, 0.95), clamp(0.5, 0.05, 0.95), clamp(1.0, 0.05, 0.95)
    (0.05, 0.5, 0.95)
    """
    return max(low, min(high, x))


def weighted_choice(
    choices: t.Sequence[T],
    weights: t.Sequence[float],
    rng: random.Random | None = None,
) -> T:
    """Chooses one item with probability proportional to its weight.

    If all the weights are zero, every choice is equally likely.

    >>> rng = random.Random(42)
    >>> weighted_choice(["a", "b"], [0.0, 1.0], rng)
    'b'
    >>> weighted_choice(["a", "b"], [0.0, 0.0], rng) in ("a", "b")
    True
    >>> weighted_choice([], [], rng)
    Traceback (most recent call last):
    ValueError: No choices to choose from
    """
    if not choices:
        raise ValueError("No choices to choose from")
    if rng is None:
        rng = random.Random()
    if sum(weights) <= 0:
        return rng.choice(choices)
    return rng.choices(choices, weights=weights, k=1)[0]
