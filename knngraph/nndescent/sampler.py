"""
Uniform sampling without replacement.

Used to draw the random initial neighbors of every point and to cap the number of
new/old candidates each point contributes to a local join.
"""

import math
from typing import Hashable, Iterable, List

import numpy as np


def sample_size(rho: float, k: int) -> int:
    """
    Number of candidates drawn per pool: rho * k rounded half up, at least 1.

    Example:
        >>> sample_size(0.5, 10)
        5
    """
    # Half up, not Python's half-to-even round()
    return max(1, int(math.floor(rho * k + 0.5)))


def sample(universe: Iterable[Hashable], count: int, rng: np.random.Generator) -> List[Hashable]:
    """
    Draw min(count, |universe|) distinct ids uniformly without replacement.

    The universe is sorted before drawing so the result only depends on its
    contents and the generator state, not on set iteration order.

    Args:
        universe: Ids to draw from (duplicates are ignored)
        count: Number of ids wanted
        rng: numpy random generator

    Returns:
        List of drawn ids (empty when the universe is empty or count <= 0)
    """
    items = sorted(set(universe))
    if not items or count <= 0:
        return []

    if count >= len(items):
        return items

    picks = rng.choice(len(items), size=count, replace=False)
    return [items[i] for i in sorted(picks)]


def sample_others(n: int, count: int, exclude: int, rng: np.random.Generator) -> List[int]:
    """
    Draw distinct indices from range(n) other than `exclude`.

    Equivalent to sample(set(range(n)) - {exclude}, count, rng) without building
    the universe, which matters when every point draws its initial neighbors.

    Args:
        n: Size of the index range
        count: Number of indices wanted
        exclude: Index that must not be drawn
        rng: numpy random generator

    Returns:
        Sorted list of min(count, n - 1) indices
    """
    available = n - 1
    if available <= 0 or count <= 0:
        return []

    if count >= available:
        return [i for i in range(n) if i != exclude]

    picks = rng.choice(available, size=count, replace=False)
    # Shift everything at or above the excluded slot up by one
    return sorted(int(i) + 1 if i >= exclude else int(i) for i in picks)
