"""
Materialized kNN index.

KNNIndex is the frozen result of a build: for every dataset point, its neighbors
sorted by ascending distance (at most k of them). It carries the build status and
statistics so callers can tell a converged NNDescent run from one that hit the
iteration cap.

Instances are immutable once constructed and safe to share between threads.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Hashable, Iterator, List, Mapping, Sequence, Tuple

import numpy as np

from knngraph.exceptions import InvalidParameterError, PointNotFoundError
from knngraph.nndescent.neighbor_set import UNBOUNDED_DISTANCE, NeighborEntry


def _is_integer_id(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


class BuildStatus(Enum):
    """How an index was produced."""

    CONVERGED = "converged"
    UNCONVERGED = "unconverged"  # iteration cap reached before the delta threshold
    EXACT = "exact"  # brute force


@dataclass(frozen=True)
class IterationStats:
    """Counters for a single refinement iteration."""

    iteration: int
    updates: int
    distance_evaluations: int


@dataclass(frozen=True)
class BuildStats:
    """Statistics returned alongside an index instead of being logged as a side channel."""

    iterations: Tuple[IterationStats, ...] = ()
    init_distance_evaluations: int = 0
    construction_time_ms: float = 0.0
    threshold: float = 0.0

    @property
    def total_updates(self) -> int:
        return sum(it.updates for it in self.iterations)

    @property
    def total_distance_evaluations(self) -> int:
        return self.init_distance_evaluations + sum(
            it.distance_evaluations for it in self.iterations
        )

    @property
    def updates_per_iteration(self) -> List[int]:
        return [it.updates for it in self.iterations]

    def scan_rate(self, n: int) -> float:
        """
        Distance evaluations relative to a full pairwise scan, n*(n-1)/2.

        Values well below 1.0 mean the build was cheaper than brute force.
        """
        if n < 2:
            return 0.0
        return self.total_distance_evaluations / (n * (n - 1) / 2.0)


class KNNIndex:
    """
    Immutable mapping from point id to its sorted neighbor list.

    Example:
        >>> index = build_index(range(4), dist, k=1)
        >>> index.neighbors_of(0)
        (NeighborEntry(distance=1.0, id=1),)
    """

    def __init__(
        self,
        neighbors: Mapping[Hashable, Sequence[NeighborEntry]],
        k: int,
        status: BuildStatus = BuildStatus.CONVERGED,
        stats: BuildStats | None = None,
    ) -> None:
        """
        Freeze neighbor lists into an index.

        Args:
            neighbors: Point id -> neighbors sorted by ascending distance
            k: Neighbor count the index was built for
            status: How the lists were produced
            stats: Build statistics
        """
        frozen: Dict[Hashable, Tuple[NeighborEntry, ...]] = {
            point: tuple(entries) for point, entries in neighbors.items()
        }
        self._neighbors = MappingProxyType(frozen)
        self._k = k
        self.status = status
        self.stats = stats if stats is not None else BuildStats()

    @property
    def k(self) -> int:
        return self._k

    @property
    def is_converged(self) -> bool:
        """False only when NNDescent stopped on the iteration cap."""
        return self.status is not BuildStatus.UNCONVERGED

    @property
    def points(self) -> Tuple[Hashable, ...]:
        return tuple(self._neighbors)

    def neighbors_of(self, point: Hashable) -> Tuple[NeighborEntry, ...]:
        """
        Neighbors of a point, ascending by distance (at most k).

        Raises:
            PointNotFoundError: If the point was not in the indexed dataset
        """
        try:
            return self._neighbors[point]
        except KeyError:
            raise PointNotFoundError(point) from None

    def neighbor_ids(self, point: Hashable) -> List[Hashable]:
        return [entry.id for entry in self.neighbors_of(point)]

    def distances_of(self, point: Hashable) -> List[float]:
        """Neighbor distances padded with UNBOUNDED_DISTANCE up to length k."""
        distances = [entry.distance for entry in self.neighbors_of(point)]
        distances.extend([UNBOUNDED_DISTANCE] * (self._k - len(distances)))
        return distances

    def knn_distance(self, point: Hashable) -> float:
        """
        Distance to the k-th neighbor.

        Returns:
            UNBOUNDED_DISTANCE when the point has fewer than k neighbors
        """
        entries = self.neighbors_of(point)
        if len(entries) < self._k:
            return UNBOUNDED_DISTANCE
        return entries[-1].distance

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Dense (n, k) neighbor graph.

        Row r belongs to ``self.points[r]``. Indexes built by this package list
        points in ascending id order, so for ids 0..n-1 row r is point r.
        Missing slots hold -1 and inf.

        Returns:
            (indices, distances) as int64 and float64 arrays

        Raises:
            InvalidParameterError: If a point or neighbor id is not an integer
        """
        n = len(self._neighbors)
        indices = np.full((n, self._k), -1, dtype=np.int64)
        distances = np.full((n, self._k), np.inf, dtype=np.float64)

        for row, (point, entries) in enumerate(self._neighbors.items()):
            if not _is_integer_id(point):
                raise InvalidParameterError(
                    f"to_arrays() needs integer point ids, got {point!r}"
                )
            for col, entry in enumerate(entries):
                if not _is_integer_id(entry.id):
                    raise InvalidParameterError(
                        f"to_arrays() needs integer point ids, got {entry.id!r}"
                    )
                indices[row, col] = entry.id
                distances[row, col] = entry.distance

        return indices, distances

    def __contains__(self, point: Hashable) -> bool:
        return point in self._neighbors

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._neighbors)

    def __len__(self) -> int:
        return len(self._neighbors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KNNIndex):
            return NotImplemented
        return self._k == other._k and dict(self._neighbors) == dict(other._neighbors)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"KNNIndex(points={len(self)}, k={self._k}, status={self.status.value})"
