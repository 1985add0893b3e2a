"""
knngraph - Approximate k-nearest-neighbor graphs with NNDescent

Builds, for every point of a fixed dataset and any distance function, a list of its
approximate k nearest neighbors by iteratively refining a random neighbor graph.
Exact brute force construction is included as a reference.
"""

__version__ = "0.1.0"

from knngraph.exceptions import (
    KNNGraphError,
    InvalidParameterError,
    DistanceFunctionError,
    PointNotFoundError,
    BuildCancelledError,
)
from knngraph.nndescent import (
    UNBOUNDED_DISTANCE,
    BoundedNeighborSet,
    GraphBuilder,
    InsertOutcome,
    Metric,
    NeighborEntry,
)
from knngraph.index import BuildStats, BuildStatus, IterationStats, KNNIndex
from knngraph.config import (
    KNNGraphConfig,
    get_default_config,
    get_fast_config,
    get_exact_check_config,
)
from knngraph.knn_graph import build_index, build_index_from_vectors
from knngraph.exact import build_exact_index, exact_neighbors_from_vectors

__all__ = [
    "KNNGraphError",
    "InvalidParameterError",
    "DistanceFunctionError",
    "PointNotFoundError",
    "BuildCancelledError",
    "UNBOUNDED_DISTANCE",
    "BoundedNeighborSet",
    "GraphBuilder",
    "InsertOutcome",
    "Metric",
    "NeighborEntry",
    "BuildStats",
    "BuildStatus",
    "IterationStats",
    "KNNIndex",
    "KNNGraphConfig",
    "get_default_config",
    "get_fast_config",
    "get_exact_check_config",
    "build_index",
    "build_index_from_vectors",
    "build_exact_index",
    "exact_neighbors_from_vectors",
]
