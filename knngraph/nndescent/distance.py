"""
Distance metrics for vector data.

The graph builder only needs a callable distance(a, b) over point ids. For the
common case of points stored as rows of a numpy array, this module provides the
metrics and a VectorDistance adapter that turns row indices into vectors.

Metrics are chosen by name through the Metric enum rather than by passing classes
around, so configuration files can refer to them.
"""

from enum import Enum
from typing import Callable, Dict

import numpy as np
import numpy.typing as npt

Vector = npt.NDArray[np.float32]
DistanceFunction = Callable[[Vector, Vector], float]


def euclidean_distance(v1: Vector, v2: Vector) -> float:
    """
    Euclidean (L2) distance between two vectors.

    Example:
        >>> euclidean_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0]))
        5.0
    """
    return float(np.linalg.norm(np.asarray(v1, dtype=np.float64) - np.asarray(v2, dtype=np.float64)))


def squared_euclidean_distance(v1: Vector, v2: Vector) -> float:
    """Squared L2 distance. Same neighbor order as euclidean, no square root."""
    diff = np.asarray(v1, dtype=np.float64) - np.asarray(v2, dtype=np.float64)
    return float(np.dot(diff, diff))


def manhattan_distance(v1: Vector, v2: Vector) -> float:
    """Manhattan (L1) distance between two vectors."""
    return float(np.sum(np.abs(np.asarray(v1, dtype=np.float64) - np.asarray(v2, dtype=np.float64))))


def cosine_similarity(v1: Vector, v2: Vector) -> float:
    """
    Compute cosine similarity between two vectors.

    Ranges from -1 (opposite directions) to 1 (same direction). Zero vectors have
    similarity 0 with everything.

    Args:
        v1: First vector (1D numpy array)
        v2: Second vector (1D numpy array)

    Returns:
        Similarity score between -1 and 1 (higher means more similar)
    """
    norm_v1 = np.linalg.norm(v1)
    norm_v2 = np.linalg.norm(v2)

    if norm_v1 == 0.0 or norm_v2 == 0.0:
        return 0.0

    return float(np.dot(v1, v2) / (norm_v1 * norm_v2))


def cosine_distance(v1: Vector, v2: Vector) -> float:
    """
    Cosine distance, 1 - cosine_similarity.

    Ranges from 0 (identical direction) to 2 (opposite). Not a metric, which is
    fine for NNDescent.
    """
    # Clamp float noise so identical directions never go negative
    return max(0.0, 1.0 - cosine_similarity(v1, v2))


class Metric(str, Enum):
    """Names of the built-in vector metrics."""

    EUCLIDEAN = "euclidean"
    SQEUCLIDEAN = "sqeuclidean"
    MANHATTAN = "manhattan"
    COSINE = "cosine"


_METRICS: Dict[Metric, DistanceFunction] = {
    Metric.EUCLIDEAN: euclidean_distance,
    Metric.SQEUCLIDEAN: squared_euclidean_distance,
    Metric.MANHATTAN: manhattan_distance,
    Metric.COSINE: cosine_distance,
}


def get_metric(metric: "Metric | str") -> DistanceFunction:
    """
    Look up a vector distance function by name.

    Raises:
        ValueError: If the name is not a known metric
    """
    try:
        return _METRICS[Metric(metric)]
    except ValueError:
        valid = [m.value for m in Metric]
        raise ValueError(f"Unknown metric {metric!r}, expected one of {valid}") from None


class VectorDistance:
    """
    Distance over row indices of a 2D array.

    Lets the builder work on integer point ids while the metric sees vectors.
    Counts evaluations so callers can check how much work a build did.
    """

    def __init__(self, vectors: np.ndarray, metric: "Metric | str" = Metric.EUCLIDEAN) -> None:
        vectors = np.asarray(vectors)
        if vectors.ndim != 2:
            raise ValueError(f"Expected a 2D array of vectors, got shape {vectors.shape}")

        self.vectors = vectors
        self.metric = Metric(metric)
        self._fn = get_metric(self.metric)
        self.calls = 0

    def __call__(self, a: int, b: int) -> float:
        self.calls += 1
        return self._fn(self.vectors[a], self.vectors[b])

    def __repr__(self) -> str:
        return f"VectorDistance(n={len(self.vectors)}, metric={self.metric.value})"
