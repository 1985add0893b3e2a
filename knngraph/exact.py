"""
Exact kNN by brute force.

Used as a correctness reference for the approximate builder: every pair of points
is compared once, so the cost is n*(n-1)/2 distance evaluations.
"""

import logging
import math
import time
from typing import Hashable, Iterable, Tuple

import numpy as np
from sklearn.neighbors import NearestNeighbors

from knngraph.exceptions import DistanceFunctionError, InvalidParameterError
from knngraph.index import BuildStats, BuildStatus, KNNIndex
from knngraph.nndescent.builder import PointDistance
from knngraph.nndescent.distance import Metric
from knngraph.nndescent.neighbor_set import BoundedNeighborSet

logger = logging.getLogger(__name__)


def build_exact_index(dataset: Iterable[Hashable], distance_fn: PointDistance, k: int) -> KNNIndex:
    """
    Build the exact kNN index by comparing all pairs.

    Args:
        dataset: Point ids (unique, mutually comparable)
        distance_fn: Symmetric distance between two point ids
        k: Number of neighbors per point

    Returns:
        KNNIndex with status EXACT

    Raises:
        InvalidParameterError: If k < 1 or the dataset is empty
        DistanceFunctionError: If the distance function fails
    """
    points = list(dataset)
    if not points:
        raise InvalidParameterError("Dataset is empty")
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 1:
        raise InvalidParameterError(f"k must be a positive integer, got {k!r}")

    try:
        points.sort()
    except TypeError as e:
        raise InvalidParameterError(f"Point ids must be mutually comparable: {e}") from e

    start = time.perf_counter()
    sets = {point: BoundedNeighborSet(k, owner=point) for point in points}
    if len(sets) != len(points):
        raise InvalidParameterError("Point ids must be unique")

    evaluations = 0
    for i, a in enumerate(points):
        for b in points[i + 1:]:
            try:
                distance = float(distance_fn(a, b))
            except Exception as e:
                raise DistanceFunctionError(a, b, e) from e
            if not math.isfinite(distance):
                error = ValueError(f"non-finite distance {distance}")
                raise DistanceFunctionError(a, b, error) from error
            evaluations += 1
            sets[a].try_insert(distance, b)
            sets[b].try_insert(distance, a)

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.debug("Exact kNN for %d points: %d distance evaluations", len(points), evaluations)

    stats = BuildStats(init_distance_evaluations=evaluations, construction_time_ms=elapsed_ms)
    return KNNIndex(
        {point: s.to_sorted() for point, s in sets.items()},
        k,
        status=BuildStatus.EXACT,
        stats=stats,
    )


def exact_neighbors_from_vectors(
    vectors: np.ndarray, k: int, metric: "Metric | str" = Metric.EUCLIDEAN
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Exact kNN of every row of a matrix, excluding the row itself.

    Uses scikit-learn's brute force search, which is much faster than calling a
    Python distance function per pair.

    Args:
        vectors: 2D array (n, dim)
        k: Number of neighbors (clipped to n - 1)
        metric: Metric name understood by scikit-learn

    Returns:
        (indices, distances), each of shape (n, min(k, n - 1))
    """
    vectors = np.asarray(vectors)
    n = len(vectors)
    if n == 0:
        raise InvalidParameterError("Dataset is empty")
    if k < 1:
        raise InvalidParameterError(f"k must be >= 1, got {k}")

    n_neighbors = min(k, n - 1)
    if n_neighbors == 0:
        return np.empty((n, 0), dtype=np.int64), np.empty((n, 0), dtype=np.float64)

    nn = NearestNeighbors(n_neighbors=n_neighbors + 1, algorithm="brute", metric=Metric(metric).value)
    nn.fit(vectors)
    distances, indices = nn.kneighbors(vectors)

    # Drop each row's self match. With duplicate vectors self is not guaranteed
    # to come first, so remove it by value rather than by column.
    out_idx = np.empty((n, n_neighbors), dtype=np.int64)
    out_dist = np.empty((n, n_neighbors), dtype=np.float64)
    for row in range(n):
        keep = indices[row] != row
        out_idx[row] = indices[row][keep][:n_neighbors]
        out_dist[row] = distances[row][keep][:n_neighbors]

    return out_idx, out_dist
