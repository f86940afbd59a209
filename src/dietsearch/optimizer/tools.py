"""Numeric helpers shared by the constraint model and the search algorithms."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

EPSILON = 1e-3


def approx(x: float, y: float) -> bool:
    """Whether x and y are within EPSILON of each other."""
    return abs(x - y) < EPSILON


def approx_less_than(x: float, y: float) -> bool:
    """Strictly less than, and not even approximately equal."""
    return x < y and not approx(x, y)


def normalise_penalty(value: float) -> float:
    """Map NaN and -inf to +inf; every other value passes through."""
    if math.isnan(value) or value == -math.inf:
        return math.inf
    return value


def first_surpassed_probability(
    probabilities: Sequence[float], rng: np.random.Generator
) -> int:
    """Sample an index from a probability vector by cumulative sum.

    The uniform draw is clamped to [EPSILON, 1 - EPSILON].

    Returns:
        The first index at which the running sum exceeds the draw, or -1 if
        the probabilities never exceed it (e.g. they sum to 0).
    """
    draw = min(max(EPSILON, float(rng.random())), 1 - EPSILON)

    total = 0.0
    for i, p in enumerate(probabilities):
        total += p
        if total > draw:
            return i
    return -1
