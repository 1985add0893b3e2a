"""
Tests for distance metrics.

These tests verify the vector metrics against known vector pairs and the
adapter that exposes them over row indices.
"""

import numpy as np
import pytest
from knngraph.nndescent.distance import (
    Metric,
    VectorDistance,
    cosine_distance,
    cosine_similarity,
    euclidean_distance,
    get_metric,
    manhattan_distance,
    squared_euclidean_distance,
)


def test_euclidean_distance_known_pair():
    """3-4-5 triangle"""
    v1 = np.array([0.0, 0.0], dtype=np.float32)
    v2 = np.array([3.0, 4.0], dtype=np.float32)

    assert np.isclose(euclidean_distance(v1, v2), 5.0)
    assert np.isclose(squared_euclidean_distance(v1, v2), 25.0)
    assert np.isclose(manhattan_distance(v1, v2), 7.0)


def test_distances_are_symmetric():
    """d(a, b) == d(b, a) for every built-in metric"""
    rng = np.random.default_rng(0)
    a, b = rng.random(8), rng.random(8)

    for metric in Metric:
        fn = get_metric(metric)
        assert fn(a, b) == pytest.approx(fn(b, a))


def test_cosine_similarity_identical_vectors():
    """Identical vectors should have similarity of 1.0"""
    v1 = np.array([1.0, 2.0, 3.0], dtype=np.float32)

    assert np.isclose(cosine_similarity(v1, v1), 1.0)
    assert cosine_distance(v1, v1) >= 0.0, "Float noise should not give negative distances"


def test_cosine_opposite_vectors():
    """Opposite directions have distance 2"""
    v1 = np.array([1.0, 2.0, 3.0], dtype=np.float32)
    assert np.isclose(cosine_distance(v1, -v1), 2.0)


def test_cosine_zero_vector():
    """Zero vectors have similarity 0.0 (distance 1.0)"""
    v1 = np.array([1.0, 2.0, 3.0], dtype=np.float32)
    v2 = np.zeros(3, dtype=np.float32)

    assert cosine_similarity(v1, v2) == 0.0
    assert cosine_distance(v1, v2) == 1.0


def test_get_metric_by_name():
    """Metrics can be selected by their string name"""
    assert get_metric("euclidean") is euclidean_distance
    assert get_metric(Metric.COSINE) is cosine_distance


def test_get_metric_unknown():
    """Unknown metric names are rejected"""
    with pytest.raises(ValueError):
        get_metric("chebyshev")


def test_vector_distance_over_rows():
    """VectorDistance maps row indices to vectors and counts calls"""
    vectors = np.array([[0.0, 0.0], [3.0, 4.0], [1.0, 0.0]])
    distance = VectorDistance(vectors, "euclidean")

    assert distance(0, 1) == pytest.approx(5.0)
    assert distance(0, 2) == pytest.approx(1.0)
    assert distance.calls == 2


def test_vector_distance_requires_matrix():
    """1D input is rejected"""
    with pytest.raises(ValueError):
        VectorDistance(np.zeros(4))
