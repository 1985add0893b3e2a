"""
Tests for the materialized KNNIndex.
"""

import threading

import numpy as np
import pytest
from knngraph.exceptions import InvalidParameterError, PointNotFoundError
from knngraph.index import BuildStats, BuildStatus, IterationStats, KNNIndex
from knngraph.nndescent.neighbor_set import UNBOUNDED_DISTANCE, NeighborEntry


@pytest.fixture
def index() -> KNNIndex:
    neighbors = {
        0: [NeighborEntry(1.0, 1), NeighborEntry(2.0, 2)],
        1: [NeighborEntry(1.0, 0), NeighborEntry(1.5, 2)],
        2: [NeighborEntry(1.5, 1)],
    }
    return KNNIndex(neighbors, k=2)


def test_neighbors_of(index):
    """Neighbor lists come back in ascending order"""
    assert index.neighbors_of(0) == (NeighborEntry(1.0, 1), NeighborEntry(2.0, 2))
    assert index.neighbor_ids(1) == [0, 2]


def test_unknown_point(index):
    """Querying a point outside the dataset fails with PointNotFoundError"""
    with pytest.raises(PointNotFoundError):
        index.neighbors_of(42)

    # Still a KeyError for callers that catch the builtin
    with pytest.raises(KeyError):
        index.knn_distance(42)


def test_size_and_k(index):
    assert len(index) == 3
    assert index.k == 2
    assert 2 in index and 5 not in index
    assert list(index) == [0, 1, 2]


def test_knn_distance_and_padding(index):
    """Points with fewer than k neighbors report the unbounded distance"""
    assert index.knn_distance(0) == 2.0
    assert index.knn_distance(2) == UNBOUNDED_DISTANCE
    assert index.distances_of(2) == [1.5, UNBOUNDED_DISTANCE]


def test_to_arrays(index):
    """Dense export pads missing neighbors with -1 / inf"""
    indices, distances = index.to_arrays()

    assert indices.shape == (3, 2)
    assert indices[2].tolist() == [1, -1]
    assert np.isinf(distances[2, 1])
    assert distances[0].tolist() == [1.0, 2.0]


def test_index_is_immutable(index):
    """The neighbor mapping cannot be changed after construction"""
    with pytest.raises(TypeError):
        index._neighbors[0] = ()
    assert isinstance(index.neighbors_of(0), tuple)


def test_source_mapping_is_copied():
    """Changing the input after construction does not affect the index"""
    neighbors = {0: [NeighborEntry(1.0, 1)], 1: [NeighborEntry(1.0, 0)]}
    index = KNNIndex(neighbors, k=1)

    neighbors[0].append(NeighborEntry(5.0, 9))
    neighbors[2] = []

    assert len(index.neighbors_of(0)) == 1
    assert 2 not in index


def test_concurrent_reads(index):
    """Many threads can query at once"""
    errors = []

    def reader():
        try:
            for _ in range(1000):
                assert index.neighbor_ids(0) == [1, 2]
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=reader) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []


def test_status_and_stats():
    """Unconverged indexes are distinguishable from converged ones"""
    stats = BuildStats(
        iterations=(IterationStats(1, 40, 100), IterationStats(2, 3, 60)),
        init_distance_evaluations=50,
    )
    index = KNNIndex({0: [], 1: []}, k=1, status=BuildStatus.UNCONVERGED, stats=stats)

    assert not index.is_converged
    assert stats.total_updates == 43
    assert stats.total_distance_evaluations == 210
    assert stats.updates_per_iteration == [40, 3]
    assert stats.scan_rate(21) == pytest.approx(1.0)


def test_equality():
    a = KNNIndex({0: [NeighborEntry(1.0, 1)], 1: [NeighborEntry(1.0, 0)]}, k=1)
    b = KNNIndex({0: [NeighborEntry(1.0, 1)], 1: [NeighborEntry(1.0, 0)]}, k=1)
    c = KNNIndex({0: [NeighborEntry(2.0, 1)], 1: [NeighborEntry(2.0, 0)]}, k=1)

    assert a == b
    assert a != c


def test_to_arrays_rows_follow_points():
    """Row r of the export belongs to points[r]"""
    neighbors = {
        10: [NeighborEntry(1.0, 20)],
        20: [NeighborEntry(1.0, 10)],
        30: [NeighborEntry(5.0, 20)],
    }
    index = KNNIndex(neighbors, k=1)
    indices, distances = index.to_arrays()

    assert index.points == (10, 20, 30)
    assert indices[:, 0].tolist() == [20, 10, 20]
    assert distances[2, 0] == 5.0


def test_to_arrays_rejects_non_integer_ids():
    """String ids cannot be written into an int64 array"""
    neighbors = {"a": [NeighborEntry(1.0, "b")], "b": [NeighborEntry(1.0, "a")]}

    with pytest.raises(InvalidParameterError):
        KNNIndex(neighbors, k=1).to_arrays()


def test_to_arrays_rejects_bool_ids():
    neighbors = {0: [NeighborEntry(1.0, True)], 1: [NeighborEntry(1.0, 0)]}

    with pytest.raises(InvalidParameterError):
        KNNIndex(neighbors, k=1).to_arrays()
