"""
Metrics for evaluating approximate kNN graphs.

This module provides functions to:
- Compute recall@k for a single neighbor list
- Compare a whole approximate index against an exact one (graph recall)
- Measure how far approximate neighbor distances are from the exact ones
"""

from typing import Hashable, List, Sequence

import numpy as np

from knngraph.index import KNNIndex


def compute_recall_at_k(
    retrieved_ids: Sequence[Hashable],
    ground_truth_ids: Sequence[Hashable],
    k: int = 10
) -> float:
    """
    Compute recall@k: fraction of ground truth neighbors retrieved.

    Args:
        retrieved_ids: Neighbor ids found by the approximate method
        ground_truth_ids: True nearest neighbor ids
        k: Number of neighbors to consider

    Returns:
        Recall@k value between 0.0 and 1.0. When fewer than k true neighbors
        exist, recall is taken over the ones that do.

    Example:
        >>> compute_recall_at_k([1, 2, 3, 99, 98], [1, 2, 3, 4, 5], k=5)
        0.6
    """
    retrieved_set = set(retrieved_ids[:k])
    ground_truth_set = set(ground_truth_ids[:k])

    if not ground_truth_set:
        return 1.0 if not retrieved_set else 0.0

    correct_retrievals = len(retrieved_set & ground_truth_set)
    return correct_retrievals / len(ground_truth_set)


def compute_graph_recall(approximate: KNNIndex, exact: KNNIndex) -> float:
    """
    Mean recall@k over all points of an approximate index.

    Both indexes must cover the same points.

    Returns:
        Average neighbor-id overlap between 0.0 and 1.0
    """
    if set(approximate) != set(exact):
        raise ValueError("Indexes cover different points")
    if len(exact) == 0:
        return 1.0

    k = min(approximate.k, exact.k)
    recalls = [
        compute_recall_at_k(approximate.neighbor_ids(point), exact.neighbor_ids(point), k)
        for point in exact
    ]
    return float(np.mean(recalls))


def compute_recall_per_point(approximate: KNNIndex, exact: KNNIndex) -> List[float]:
    """Recall@k of every point, in the exact index's point order."""
    k = min(approximate.k, exact.k)
    return [
        compute_recall_at_k(approximate.neighbor_ids(point), exact.neighbor_ids(point), k)
        for point in exact
    ]


def compute_distance_error(approximate: KNNIndex, exact: KNNIndex) -> float:
    """
    Largest difference between approximate and exact neighbor distances.

    Compares the i-th approximate distance with the i-th exact distance of every
    point. Neighbor ids may differ on ties; distances should not.

    Returns:
        Maximum absolute difference (0.0 for a perfect index, inf when an
        approximate list is shorter than the exact one)
    """
    worst = 0.0
    for point in exact:
        exact_d = [e.distance for e in exact.neighbors_of(point)]
        approx_d = [e.distance for e in approximate.neighbors_of(point)]
        if len(approx_d) < len(exact_d):
            return float("inf")
        if exact_d:
            diff = np.abs(np.asarray(approx_d[:len(exact_d)]) - np.asarray(exact_d))
            worst = max(worst, float(diff.max()))
    return worst


def compute_mean_reciprocal_rank(
    retrieved_ids: Sequence[Hashable],
    ground_truth_ids: Sequence[Hashable]
) -> float:
    """
    Reciprocal rank of the first correct neighbor (0 if none found).

    Example:
        >>> compute_mean_reciprocal_rank([99, 98, 1, 2], [1, 2, 3, 4])
        0.333...
    """
    ground_truth_set = set(ground_truth_ids)

    for rank, retrieved_id in enumerate(retrieved_ids, start=1):
        if retrieved_id in ground_truth_set:
            return 1.0 / rank

    return 0.0
