"""
Build entry points for approximate kNN graphs.

build_index() works on any collection of point ids plus a distance function over
those ids. build_index_from_vectors() is the shortcut for rows of a numpy array
with one of the built-in metrics.
"""

import logging
import threading
from typing import Hashable, Iterable, Optional

import numpy as np

from knngraph.config import KNNGraphConfig
from knngraph.exact import build_exact_index
from knngraph.exceptions import InvalidParameterError
from knngraph.index import KNNIndex
from knngraph.nndescent.builder import GraphBuilder, PointDistance, validate_parameters
from knngraph.nndescent.distance import VectorDistance

logger = logging.getLogger(__name__)


def build_index(
    dataset: Iterable[Hashable],
    distance_fn: PointDistance,
    k: Optional[int] = None,
    rho: Optional[float] = None,
    delta: Optional[float] = None,
    seed: Optional[int] = None,
    *,
    max_iterations: Optional[int] = None,
    n_jobs: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    exact_threshold: Optional[int] = None,
    config: Optional[KNNGraphConfig] = None,
) -> KNNIndex:
    """
    Build an approximate kNN index with NNDescent.

    Datasets with at most exact_threshold points are indexed by brute force
    instead (status EXACT): on inputs that small a full scan is cheap and
    NNDescent can settle in a poor graph when its candidate pools are tiny.
    With default arguments a four point dataset never reaches GraphBuilder; pass
    exact_threshold=0 to force NNDescent on small inputs.

    Explicit arguments take precedence over values in config; anything left unset
    falls back to the config (or the default config).

    Args:
        dataset: Point ids (unique, hashable, mutually comparable)
        distance_fn: distance(a, b) -> float, symmetric and deterministic
        k: Neighbors per point
        rho: Sample rate in (0, 1]
        delta: Early termination fraction in (0, 1)
        seed: Random seed
        max_iterations: Refinement iteration cap
        n_jobs: Worker threads (1 gives reproducible results for a seed)
        cancel_event: Set it to stop the build before the next iteration
        exact_threshold: Brute force at or below this many points (0 disables)
        config: KNNGraphConfig providing defaults

    Returns:
        KNNIndex; check index.status / index.is_converged for the outcome

    Raises:
        InvalidParameterError: Bad parameters or empty dataset (before any distance call)
        DistanceFunctionError: The distance function raised
        BuildCancelledError: cancel_event was set
    """
    if config is None:
        config = KNNGraphConfig()

    points = list(dataset)
    k = config.k if k is None else k
    rho = config.rho if rho is None else rho
    delta = config.delta if delta is None else delta
    max_iterations = config.max_iterations if max_iterations is None else max_iterations
    n_jobs = config.n_jobs if n_jobs is None else n_jobs
    if exact_threshold is None:
        exact_threshold = config.exact_threshold

    validate_parameters(len(points), k, rho, delta, max_iterations, n_jobs)

    if len(points) <= exact_threshold:
        logger.debug("%d points <= exact_threshold %d, using brute force", len(points), exact_threshold)
        return build_exact_index(points, distance_fn, k)

    builder = GraphBuilder(
        points,
        distance_fn,
        k=k,
        rho=rho,
        delta=delta,
        seed=config.seed if seed is None else seed,
        max_iterations=max_iterations,
        n_jobs=n_jobs,
        cancel_event=cancel_event,
    )
    logger.debug("Starting build: %r", builder)
    return builder.build()


def build_index_from_vectors(
    vectors: np.ndarray,
    k: Optional[int] = None,
    metric: Optional[str] = None,
    *,
    config: Optional[KNNGraphConfig] = None,
    **kwargs,
) -> KNNIndex:
    """
    Build an approximate kNN index over the rows of a 2D array.

    Point ids are row indices, so index.to_arrays() lines up with the input.

    Args:
        vectors: Array of shape (n, dim)
        k: Neighbors per point
        metric: "euclidean", "sqeuclidean", "manhattan" or "cosine"
        config: KNNGraphConfig providing defaults
        **kwargs: Passed on to build_index (rho, delta, seed, ...)
    """
    if config is None:
        config = KNNGraphConfig()

    vectors = np.asarray(vectors)
    if vectors.ndim != 2:
        raise InvalidParameterError(f"Expected a 2D array of vectors, got shape {vectors.shape}")

    try:
        distance = VectorDistance(vectors, metric or config.metric)
    except ValueError as e:
        raise InvalidParameterError(str(e)) from e

    return build_index(range(len(vectors)), distance, k, config=config, **kwargs)


__all__ = ["build_index", "build_index_from_vectors"]
