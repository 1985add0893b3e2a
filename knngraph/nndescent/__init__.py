"""
NNDescent implementation module.

This module contains the building blocks of the approximate kNN graph builder:
- neighbor_set: Bounded max-heap of the best k neighbors of a point
- table: Neighbor sets of the whole dataset plus new/old bookkeeping
- sampler: Uniform sampling without replacement
- distance: Vector metrics (euclidean, manhattan, cosine)
- builder: The NNDescent iteration and convergence logic
"""

from knngraph.nndescent.neighbor_set import (
    UNBOUNDED_DISTANCE,
    BoundedNeighborSet,
    InsertOutcome,
    NeighborEntry,
)
from knngraph.nndescent.table import NeighborTable
from knngraph.nndescent.sampler import sample, sample_others, sample_size
from knngraph.nndescent.distance import Metric, VectorDistance, get_metric
from knngraph.nndescent.builder import BuildPhase, GraphBuilder

__all__ = [
    "UNBOUNDED_DISTANCE",
    "BoundedNeighborSet",
    "InsertOutcome",
    "NeighborEntry",
    "NeighborTable",
    "sample",
    "sample_others",
    "sample_size",
    "Metric",
    "VectorDistance",
    "get_metric",
    "BuildPhase",
    "GraphBuilder",
]
