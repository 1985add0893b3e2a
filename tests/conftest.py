"""
Pytest configuration and shared fixtures for knngraph tests
"""

import math
from typing import Callable, Dict, Tuple

import numpy as np
import pytest


class CountingDistance:
    """Euclidean distance over a dict of 2D points that counts its calls."""

    def __init__(self, points: Dict[int, Tuple[float, float]]) -> None:
        self.points = points
        self.calls = 0

    def __call__(self, a: int, b: int) -> float:
        self.calls += 1
        (x1, y1), (x2, y2) = self.points[a], self.points[b]
        return math.hypot(x1 - x2, y1 - y2)


@pytest.fixture
def square_points() -> Dict[int, Tuple[float, float]]:
    """Three points of a unit corner plus one far away point."""
    return {0: (0.0, 0.0), 1: (1.0, 0.0), 2: (0.0, 1.0), 3: (10.0, 10.0)}


@pytest.fixture
def counting_distance() -> Callable[[Dict[int, Tuple[float, float]]], CountingDistance]:
    """Factory for distance functions with a call counter."""
    return CountingDistance


@pytest.fixture
def random_vectors() -> np.ndarray:
    """100 uniformly random 2D points."""
    rng = np.random.default_rng(42)
    return rng.random((100, 2))


@pytest.fixture
def small_vectors() -> np.ndarray:
    """50 random 3D points for comparisons against brute force."""
    rng = np.random.default_rng(7)
    return rng.random((50, 3))
