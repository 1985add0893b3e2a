"""
NNDescent graph construction.

The builder refines a random kNN graph using the observation that a neighbor of a
neighbor is likely to be a neighbor. The algorithm:
1. Gives every point k random other points as initial neighbors (all flagged new)
2. Each iteration, collects per point a pool of sampled new neighbors and reverse
   new neighbors, and a pool of sampled old neighbors and reverse old neighbors
3. Runs a local join: every pair within the new pool, and every new/old pair, is
   compared once and offered to both points' neighbor sets
4. Stops when fewer than delta * k * n updates happen in an iteration, or when the
   iteration cap is reached

Points are handled internally by dense index (0..n-1, in ascending id order), so
ordering by index is the same as ordering by id.

Candidate pools are built from the state at the start of an iteration. With
n_jobs > 1, pools and joins run on a thread pool and every neighbor set is updated
under its own lock, taken in ascending index order when a join touches two points.
"""

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from knngraph.exceptions import BuildCancelledError, DistanceFunctionError, InvalidParameterError
from knngraph.index import BuildStats, BuildStatus, IterationStats, KNNIndex
from knngraph.nndescent.neighbor_set import NeighborEntry
from knngraph.nndescent.sampler import sample, sample_others, sample_size
from knngraph.nndescent.table import NeighborTable

logger = logging.getLogger(__name__)

PointDistance = Callable[[Hashable, Hashable], float]

# (sampled new ids to age, new candidate pool, old candidate pool)
CandidatePools = Tuple[List[int], List[int], List[int]]

DEFAULT_MAX_ITERATIONS = 100


class BuildPhase(Enum):
    """Where a GraphBuilder is in its lifecycle."""

    INIT = "init"
    REFINE = "refine"
    CONVERGED = "converged"
    UNCONVERGED = "unconverged"


def validate_parameters(
    n: int,
    k: int,
    rho: float,
    delta: float,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    n_jobs: int = 1,
) -> None:
    """
    Check build parameters before any work is done.

    Raises:
        InvalidParameterError: On k < 1, rho outside (0, 1], delta outside (0, 1),
            max_iterations < 1, n_jobs < 1 or an empty dataset
    """
    if n == 0:
        raise InvalidParameterError("Dataset is empty")
    if not isinstance(k, (int, np.integer)) or isinstance(k, bool) or k < 1:
        raise InvalidParameterError(f"k must be a positive integer, got {k!r}")
    if not 0.0 < rho <= 1.0:
        raise InvalidParameterError(f"rho must be in (0, 1], got {rho}")
    if not 0.0 < delta < 1.0:
        raise InvalidParameterError(f"delta must be in (0, 1), got {delta}")
    if max_iterations < 1:
        raise InvalidParameterError(f"max_iterations must be >= 1, got {max_iterations}")
    if n_jobs < 1:
        raise InvalidParameterError(f"n_jobs must be >= 1, got {n_jobs}")


class GraphBuilder:
    """
    Builds an approximate kNN graph with NNDescent.

    A builder is single use: build() runs it to completion and returns the frozen
    KNNIndex. initialize() and refine_once() expose the individual phases for
    callers that want to observe the graph between iterations.
    """

    def __init__(
        self,
        points: Iterable[Hashable],
        distance_fn: PointDistance,
        k: int,
        rho: float = 1.0,
        delta: float = 0.001,
        seed: int = 0,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        n_jobs: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """
        Prepare a build. Validates parameters; computes no distances.

        Args:
            points: Dataset point ids (hashable, totally ordered, unique)
            distance_fn: Symmetric distance between two point ids
            k: Number of neighbors per point
            rho: Sample rate in (0, 1]; pools are capped at round(rho * k)
            delta: Early termination fraction in (0, 1)
            seed: Random seed
            max_iterations: Refinement iteration cap
            n_jobs: Worker threads (1 = sequential and reproducible)
            cancel_event: Checked before every refinement iteration
        """
        point_list = list(points)
        validate_parameters(len(point_list), k, rho, delta, max_iterations, n_jobs)

        try:
            self.ids: List[Hashable] = sorted(point_list)
        except TypeError as e:
            raise InvalidParameterError(f"Point ids must be mutually comparable: {e}") from e
        if len(set(self.ids)) != len(self.ids):
            raise InvalidParameterError("Point ids must be unique")

        self.distance_fn = distance_fn
        self.k = int(k)
        self.rho = rho
        self.delta = delta
        self.seed = seed
        self.max_iterations = max_iterations
        self.n_jobs = n_jobs
        self.cancel_event = cancel_event

        self.n = len(self.ids)
        self.sample_cap = sample_size(rho, self.k)
        self.threshold = delta * self.k * self.n

        self.table = NeighborTable(range(self.n), self.k)
        self.phase = BuildPhase.INIT
        self.iteration_stats: List[IterationStats] = []
        self.init_distance_evaluations = 0

        self._rng = np.random.default_rng(seed)
        # Before the first iteration every slot counts as freshly updated
        self._last_updates = self.k * self.n

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Give every point k random other points as its initial (new) neighbors."""
        if self.phase is not BuildPhase.INIT:
            raise RuntimeError(f"initialize() called in phase {self.phase.value}")

        evaluations = 0
        for i in range(self.n):
            for j in sample_others(self.n, self.k, i, self._rng):
                self.table.try_insert(i, self._distance(i, j), j)
                evaluations += 1

        self.init_distance_evaluations = evaluations
        self.phase = BuildPhase.REFINE
        logger.debug("Initialized %d points with %d distance evaluations", self.n, evaluations)

    def refine_once(self) -> IterationStats:
        """
        Run one NNDescent iteration.

        Returns:
            Update and distance counts for the iteration
        """
        if self.phase is BuildPhase.INIT:
            self.initialize()
        if self.phase is not BuildPhase.REFINE:
            raise RuntimeError(f"refine_once() called in phase {self.phase.value}")

        reverse_new, reverse_old = self.table.reverse_neighbors()
        seeds = self._rng.integers(0, 2**63 - 1, size=self.n)

        def build_pools(i: int) -> CandidatePools:
            return self._candidate_pools(i, reverse_new[i], reverse_old[i], int(seeds[i]))

        pools = self._map(build_pools, range(self.n))

        # Sampled new neighbors have now been used and age to old
        for i, (sampled_new, _, _) in enumerate(pools):
            self.table.clear_new(i, sampled_new)

        results = self._map(lambda p: self._local_join(p[1], p[2]), pools)
        updates = sum(r[0] for r in results)
        evaluations = sum(r[1] for r in results)

        stats = IterationStats(
            iteration=len(self.iteration_stats) + 1,
            updates=updates,
            distance_evaluations=evaluations,
        )
        self.iteration_stats.append(stats)
        self._last_updates = updates
        return stats

    def build(self) -> KNNIndex:
        """
        Run NNDescent until convergence or the iteration cap and freeze the result.

        Raises:
            DistanceFunctionError: If the distance function fails (no index returned)
            BuildCancelledError: If cancel_event is set between iterations
        """
        start = time.perf_counter()

        if self.phase is BuildPhase.INIT:
            self.initialize()

        while self.phase is BuildPhase.REFINE:
            if self._last_updates < self.threshold:
                self.phase = BuildPhase.CONVERGED
                break
            if len(self.iteration_stats) >= self.max_iterations:
                self.phase = BuildPhase.UNCONVERGED
                break
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise BuildCancelledError(
                    f"Build cancelled after {len(self.iteration_stats)} iterations"
                )

            stats = self.refine_once()
            logger.debug(
                "Iteration %d: %d updates (threshold %.2f), %d distance evaluations",
                stats.iteration, stats.updates, self.threshold, stats.distance_evaluations,
            )

        elapsed_ms = (time.perf_counter() - start) * 1000.0

        if self.phase is BuildPhase.UNCONVERGED:
            logger.warning(
                "NNDescent stopped after %d iterations without converging "
                "(last iteration had %d updates, threshold %.2f)",
                len(self.iteration_stats), self._last_updates, self.threshold,
            )
        else:
            logger.info(
                "NNDescent converged after %d iterations in %.1f ms (%d points, k=%d)",
                len(self.iteration_stats), elapsed_ms, self.n, self.k,
            )

        return self.freeze(elapsed_ms)

    def freeze(self, construction_time_ms: float = 0.0) -> KNNIndex:
        """Materialize the current table into an immutable KNNIndex keyed by point id."""
        neighbors = {
            self.ids[i]: [
                NeighborEntry(entry.distance, self.ids[entry.id])
                for entry in self.table[i].to_sorted()
            ]
            for i in range(self.n)
        }

        status = (
            BuildStatus.UNCONVERGED
            if self.phase is BuildPhase.UNCONVERGED
            else BuildStatus.CONVERGED
        )
        stats = BuildStats(
            iterations=tuple(self.iteration_stats),
            init_distance_evaluations=self.init_distance_evaluations,
            construction_time_ms=construction_time_ms,
            threshold=self.threshold,
        )
        return KNNIndex(neighbors, self.k, status=status, stats=stats)

    # ------------------------------------------------------------------
    # Iteration internals
    # ------------------------------------------------------------------

    def _candidate_pools(
        self,
        i: int,
        reverse_new: Sequence[int],
        reverse_old: Sequence[int],
        seed: int,
    ) -> CandidatePools:
        """Sample the new and old candidate pools of point i. Reads the table only."""
        rng = np.random.default_rng(seed)
        new_ids, old_ids = self.table.snapshot_new_and_old(i)

        sampled_new = sample(new_ids, self.sample_cap, rng)
        new_pool = set(sampled_new)
        new_pool.update(sample(reverse_new, self.sample_cap, rng))

        old_pool = set(sample(old_ids, self.sample_cap, rng))
        old_pool.update(sample(reverse_old, self.sample_cap, rng))

        return sampled_new, sorted(new_pool), sorted(old_pool)

    def _local_join(self, new_pool: List[int], old_pool: List[int]) -> Tuple[int, int]:
        """
        Compare candidate pairs of one point and update both sides.

        new x new pairs are taken once (u < v). new x old pairs are not
        deduplicated, only pairs of a point with itself are skipped.

        Returns:
            (updates, distance evaluations)
        """
        updates = 0
        evaluations = 0

        for a, u in enumerate(new_pool):
            # new_pool is sorted, so every v after u satisfies u < v
            for v in new_pool[a + 1:]:
                upd, ev = self._join_pair(u, v)
                updates += upd
                evaluations += ev

            for v in old_pool:
                if u == v:
                    continue
                upd, ev = self._join_pair(u, v)
                updates += upd
                evaluations += ev

        return updates, evaluations

    def _join_pair(self, u: int, v: int) -> Tuple[int, int]:
        """Offer u and v to each other's neighbor sets. Returns (updates, evaluations)."""
        table = self.table
        if table[u].contains(v) and table[v].contains(u):
            return 0, 0

        distance = self._distance(u, v)

        if self.n_jobs == 1:
            updates = int(table.try_insert(u, distance, v).updated)
            updates += int(table.try_insert(v, distance, u).updated)
            return updates, 1

        first, second = (u, v) if u < v else (v, u)
        with table.lock_for(first), table.lock_for(second):
            updates = int(table.try_insert(u, distance, v).updated)
            updates += int(table.try_insert(v, distance, u).updated)
        return updates, 1

    def _distance(self, i: int, j: int) -> float:
        a, b = self.ids[i], self.ids[j]
        try:
            distance = float(self.distance_fn(a, b))
        except Exception as e:
            raise DistanceFunctionError(a, b, e) from e
        # NaN would pass every comparison in the heap and evict real neighbors
        if not math.isfinite(distance):
            error = ValueError(f"non-finite distance {distance}")
            raise DistanceFunctionError(a, b, error) from error
        return distance

    def _map(self, fn, items) -> list:
        if self.n_jobs == 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.n_jobs) as executor:
            return list(executor.map(fn, items))

    def __repr__(self) -> str:
        return (
            f"GraphBuilder(n={self.n}, k={self.k}, rho={self.rho}, delta={self.delta}, "
            f"phase={self.phase.value}, iterations={len(self.iteration_stats)})"
        )
