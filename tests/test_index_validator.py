"""
Tests for index validation and graph statistics.
"""

from knngraph.index import KNNIndex
from knngraph.index_validator import IndexValidator
from knngraph.knn_graph import build_index_from_vectors
from knngraph.nndescent.neighbor_set import NeighborEntry


def test_built_index_is_valid(random_vectors):
    index = build_index_from_vectors(random_vectors, k=4, seed=0)
    validator = IndexValidator(index)

    assert validator.find_violations() == []
    stats = validator.get_graph_statistics()
    assert stats["point_count"] == 100
    assert stats["edge_count"] == 400
    assert stats["avg_in_degree"] == 4.0


def test_detects_violations():
    """Self references, duplicates, bad order and short lists are reported"""
    neighbors = {
        0: [NeighborEntry(0.0, 0)],
        1: [NeighborEntry(2.0, 0), NeighborEntry(1.0, 2)],
        2: [NeighborEntry(1.0, 0), NeighborEntry(1.0, 0)],
        3: [],
    }
    problems = IndexValidator(KNNIndex(neighbors, k=2)).find_violations()
    text = "\n".join(problems)

    assert "lists itself" in text
    assert "not sorted" in text
    assert "duplicate" in text
    assert "only 0 neighbors" in text


def test_components():
    """Two separated pairs form two components"""
    neighbors = {
        0: [NeighborEntry(1.0, 1)],
        1: [NeighborEntry(1.0, 0)],
        2: [NeighborEntry(1.0, 3)],
        3: [NeighborEntry(1.0, 2)],
    }
    validator = IndexValidator(KNNIndex(neighbors, k=1))

    assert validator.count_components() == 2
    assert validator.in_degrees() == {0: 1, 1: 1, 2: 1, 3: 1}


def test_empty_statistics():
    stats = IndexValidator(KNNIndex({}, k=1)).get_graph_statistics()
    assert stats["point_count"] == 0
