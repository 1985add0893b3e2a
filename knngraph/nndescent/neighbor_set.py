"""
Bounded neighbor sets.

A BoundedNeighborSet keeps the best k (distance, id) pairs seen so far for a single
point. It is a max-heap on (distance, id) so the current worst neighbor is always at
the top and can be compared against (or replaced by) a new candidate in O(log k).

Entries are ordered by distance first and id second, which makes the ordering total
and keeps builds reproducible when several candidates are at the same distance.
"""

import heapq
import sys
from enum import Enum
from typing import Hashable, Iterator, List, NamedTuple, Optional, Set, Tuple

# Upper bound used while a set still has free slots. Any finite candidate compares
# below it, so a set that is not yet full accepts everything.
UNBOUNDED_DISTANCE = sys.float_info.max


class NeighborEntry(NamedTuple):
    """A neighbor of some point: its distance and its id."""

    distance: float
    id: Hashable


class InsertOutcome(Enum):
    """Result of offering a candidate to a BoundedNeighborSet."""

    REJECTED = "rejected"
    REPLACED = "replaced"
    ADDED = "added"

    @property
    def updated(self) -> bool:
        """True when the set changed (counts as one update during refinement)."""
        return self is not InsertOutcome.REJECTED


class _MaxKey:
    """Heap key that inverts (distance, id) ordering so heapq behaves as a max-heap."""

    __slots__ = ("distance", "id")

    def __init__(self, distance: float, neighbor_id: Hashable) -> None:
        self.distance = distance
        self.id = neighbor_id

    def __lt__(self, other: "_MaxKey") -> bool:
        return (self.distance, self.id) > (other.distance, other.id)


class BoundedNeighborSet:
    """
    Fixed-capacity set of the k best known neighbors of one point.

    The set never grows beyond k entries, never holds the same id twice and never
    holds its owner. It is only mutated through try_insert().
    """

    def __init__(self, k: int, owner: Optional[Hashable] = None) -> None:
        """
        Create an empty neighbor set.

        Args:
            k: Capacity (number of neighbors to keep)
            owner: Id of the point this set belongs to (rejected as a neighbor)
        """
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")

        self.k = k
        self.owner = owner
        self._heap: List[_MaxKey] = []
        self._ids: Set[Hashable] = set()

    def try_insert(self, distance: float, neighbor_id: Hashable) -> InsertOutcome:
        """
        Offer a candidate neighbor.

        A candidate is rejected if it is already present, if it is the owner, or if
        the set is full and the candidate does not strictly improve on the worst
        distance. Otherwise it is added, evicting the worst entry when full.

        Args:
            distance: Distance from the owner to the candidate
            neighbor_id: Candidate id

        Returns:
            InsertOutcome describing what happened
        """
        if neighbor_id in self._ids or neighbor_id == self.owner:
            return InsertOutcome.REJECTED

        if len(self._heap) < self.k:
            heapq.heappush(self._heap, _MaxKey(distance, neighbor_id))
            self._ids.add(neighbor_id)
            return InsertOutcome.ADDED

        if distance >= self._heap[0].distance:
            return InsertOutcome.REJECTED

        evicted = heapq.heapreplace(self._heap, _MaxKey(distance, neighbor_id))
        self._ids.discard(evicted.id)
        self._ids.add(neighbor_id)
        return InsertOutcome.REPLACED

    def worst_distance(self) -> float:
        """
        Distance bound for new candidates.

        Returns:
            UNBOUNDED_DISTANCE while fewer than k entries are held, otherwise the
            largest stored distance
        """
        if len(self._heap) < self.k:
            return UNBOUNDED_DISTANCE
        return self._heap[0].distance

    def worst(self) -> Optional[NeighborEntry]:
        """Current worst entry, or None when empty."""
        if not self._heap:
            return None
        top = self._heap[0]
        return NeighborEntry(top.distance, top.id)

    def to_sorted(self) -> List[NeighborEntry]:
        """
        Export entries ordered by ascending distance (ties by id).

        Does not modify the set; repeated calls return equal lists.
        """
        return sorted(NeighborEntry(key.distance, key.id) for key in self._heap)

    def contains(self, neighbor_id: Hashable) -> bool:
        return neighbor_id in self._ids

    def ids(self) -> Tuple[Hashable, ...]:
        """Neighbor ids in no particular order."""
        return tuple(key.id for key in self._heap)

    def is_full(self) -> bool:
        return len(self._heap) >= self.k

    def __contains__(self, neighbor_id: Hashable) -> bool:
        return neighbor_id in self._ids

    def __len__(self) -> int:
        return len(self._heap)

    def __iter__(self) -> Iterator[NeighborEntry]:
        return iter(self.to_sorted())

    def __repr__(self) -> str:
        return f"BoundedNeighborSet(owner={self.owner}, k={self.k}, size={len(self)})"
