"""
Tests for the bounded neighbor set.

These tests verify the capacity, ordering and rejection rules:
- Filling a set below capacity
- Replacing the worst entry once full
- Rejecting duplicates, self references and non-improving candidates
- The unbounded worst distance sentinel
"""

import numpy as np
import pytest
from knngraph.nndescent.neighbor_set import (
    UNBOUNDED_DISTANCE,
    BoundedNeighborSet,
    InsertOutcome,
    NeighborEntry,
)


def test_add_until_full():
    """Entries are added while the set has free slots"""
    s = BoundedNeighborSet(k=3)

    assert s.try_insert(5.0, 1) is InsertOutcome.ADDED
    assert s.try_insert(1.0, 2) is InsertOutcome.ADDED
    assert s.try_insert(3.0, 3) is InsertOutcome.ADDED

    assert len(s) == 3
    assert s.is_full()
    assert s.worst_distance() == 5.0


def test_replace_evicts_worst():
    """A closer candidate replaces the current worst entry"""
    s = BoundedNeighborSet(k=2)
    s.try_insert(5.0, 1)
    s.try_insert(2.0, 2)

    assert s.try_insert(1.0, 3) is InsertOutcome.REPLACED
    assert not s.contains(1), "Worst entry should have been evicted"
    assert s.contains(3)
    assert s.worst_distance() == 2.0


def test_reject_when_not_strictly_better():
    """Candidates at or beyond the worst distance are rejected once full"""
    s = BoundedNeighborSet(k=2)
    s.try_insert(1.0, 1)
    s.try_insert(2.0, 2)

    assert s.try_insert(2.0, 3) is InsertOutcome.REJECTED, "Ties at the boundary are rejected"
    assert s.try_insert(7.0, 4) is InsertOutcome.REJECTED
    assert sorted(s.ids()) == [1, 2]


def test_reject_duplicate_id():
    """The same neighbor is never held twice, even with a better distance"""
    s = BoundedNeighborSet(k=3)
    s.try_insert(4.0, 1)

    assert s.try_insert(1.0, 1) is InsertOutcome.REJECTED
    assert len(s) == 1


def test_reject_owner():
    """A point is never its own neighbor"""
    s = BoundedNeighborSet(k=3, owner=9)
    assert s.try_insert(0.0, 9) is InsertOutcome.REJECTED
    assert len(s) == 0


def test_worst_distance_unbounded_until_full():
    """worst_distance() is the sentinel while fewer than k entries are held"""
    s = BoundedNeighborSet(k=2)
    assert s.worst_distance() == UNBOUNDED_DISTANCE

    s.try_insert(1e300, 1)
    assert s.worst_distance() == UNBOUNDED_DISTANCE
    assert s.try_insert(1e307, 2) is InsertOutcome.ADDED, "Any finite candidate is accepted"


def test_to_sorted_orders_by_distance_then_id():
    """Export is ascending by distance with ids breaking ties"""
    s = BoundedNeighborSet(k=4)
    s.try_insert(2.0, 7)
    s.try_insert(1.0, 5)
    s.try_insert(2.0, 3)
    s.try_insert(0.5, 9)

    assert s.to_sorted() == [
        NeighborEntry(0.5, 9),
        NeighborEntry(1.0, 5),
        NeighborEntry(2.0, 3),
        NeighborEntry(2.0, 7),
    ]


def test_to_sorted_is_idempotent():
    """Freezing twice without changes gives the same list and keeps the set intact"""
    s = BoundedNeighborSet(k=3)
    for i, d in enumerate([3.0, 1.0, 2.0]):
        s.try_insert(d, i)

    first = s.to_sorted()
    second = s.to_sorted()

    assert first == second
    assert len(s) == 3


def test_tie_eviction_removes_largest_id():
    """With equal worst distances the entry with the larger id is evicted"""
    s = BoundedNeighborSet(k=2)
    s.try_insert(1.0, 4)
    s.try_insert(1.0, 8)

    assert s.try_insert(0.5, 1) is InsertOutcome.REPLACED
    assert sorted(s.ids()) == [1, 4]


def test_invalid_capacity():
    """k must be positive"""
    with pytest.raises(ValueError):
        BoundedNeighborSet(k=0)


def test_random_inserts_keep_invariants():
    """Capacity, uniqueness and the owner rule hold after many random inserts"""
    rng = np.random.default_rng(0)
    s = BoundedNeighborSet(k=5, owner=-1)

    for _ in range(500):
        neighbor = int(rng.integers(-1, 50))
        distance = float(rng.random())
        s.try_insert(distance, neighbor)

        ids = s.ids()
        assert len(s) <= 5
        assert len(set(ids)) == len(ids)
        assert -1 not in ids

    assert all(entry.distance <= s.worst_distance() for entry in s.to_sorted())
