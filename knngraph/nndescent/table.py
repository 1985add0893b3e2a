"""
Neighbor table for NNDescent.

The table holds one BoundedNeighborSet per dataset point plus, for each point, the
ids of neighbors that were added since they were last used in a local join ("new"
neighbors). Everything else in a point's set is "old".

Keys are fixed when the table is created; no point is ever added or removed.
"""

import threading
from typing import Dict, Hashable, Iterable, List, Optional, Set, Tuple

from knngraph.nndescent.neighbor_set import BoundedNeighborSet, InsertOutcome


class NeighborTable:
    """
    Mapping from point id to its bounded neighbor set and new-neighbor flags.

    Owned by a single GraphBuilder while a build is running.
    """

    def __init__(self, points: Iterable[Hashable], k: int) -> None:
        """
        Allocate an empty neighbor set for every point.

        Args:
            points: Dataset point ids (each visited once)
            k: Capacity of every neighbor set
        """
        self.k = k
        self.sets: Dict[Hashable, BoundedNeighborSet] = {}
        self.new_flags: Dict[Hashable, Set[Hashable]] = {}

        for point in points:
            if point in self.sets:
                raise ValueError(f"Duplicate point id: {point!r}")
            self.sets[point] = BoundedNeighborSet(k, owner=point)
            self.new_flags[point] = set()

        # Guards a point's set and flags during parallel local joins
        self._locks: Dict[Hashable, threading.Lock] = {
            point: threading.Lock() for point in self.sets
        }

    def try_insert(self, point: Hashable, distance: float, neighbor: Hashable) -> InsertOutcome:
        """
        Offer a neighbor to a point's set, flagging it new when it is accepted.

        Args:
            point: Owner of the set
            distance: Distance between point and neighbor
            neighbor: Candidate neighbor id

        Returns:
            The InsertOutcome of the underlying set
        """
        neighbor_set = self.sets[point]
        evicted = neighbor_set.worst() if neighbor_set.is_full() else None

        outcome = neighbor_set.try_insert(distance, neighbor)
        if outcome is InsertOutcome.REPLACED and evicted is not None:
            self.new_flags[point].discard(evicted.id)
        if outcome.updated:
            self.new_flags[point].add(neighbor)

        return outcome

    def mark_new(self, point: Hashable, neighbor: Hashable) -> None:
        self.new_flags[point].add(neighbor)

    def clear_new(self, point: Hashable, neighbors: Optional[Iterable[Hashable]] = None) -> None:
        """
        Age new neighbors to old.

        Args:
            point: Point whose flags are cleared
            neighbors: Ids to clear (None clears every flag of the point)
        """
        if neighbors is None:
            self.new_flags[point].clear()
        else:
            self.new_flags[point].difference_update(neighbors)

    def snapshot_new_and_old(self, point: Hashable) -> Tuple[List[Hashable], List[Hashable]]:
        """
        Partition a point's current neighbors into new and old ids.

        Returns:
            (new_ids, old_ids), each sorted by id
        """
        flags = self.new_flags[point]
        new_ids: List[Hashable] = []
        old_ids: List[Hashable] = []
        for neighbor in self.sets[point].ids():
            if neighbor in flags:
                new_ids.append(neighbor)
            else:
                old_ids.append(neighbor)

        new_ids.sort()
        old_ids.sort()
        return new_ids, old_ids

    def reverse_neighbors(self) -> Tuple[Dict[Hashable, List[Hashable]], Dict[Hashable, List[Hashable]]]:
        """
        Compute reverse new and reverse old neighbors of every point.

        q is a reverse-new neighbor of p when p is flagged new in q's set, and a
        reverse-old neighbor of p when p is in q's set without the new flag.

        Returns:
            (reverse_new, reverse_old) mappings from point to the ids pointing at it
        """
        reverse_new: Dict[Hashable, List[Hashable]] = {point: [] for point in self.sets}
        reverse_old: Dict[Hashable, List[Hashable]] = {point: [] for point in self.sets}

        for q, neighbor_set in self.sets.items():
            flags = self.new_flags[q]
            for p in neighbor_set.ids():
                if p in flags:
                    reverse_new[p].append(q)
                else:
                    reverse_old[p].append(q)

        return reverse_new, reverse_old

    def lock_for(self, point: Hashable) -> threading.Lock:
        return self._locks[point]

    def worst_distances(self) -> Dict[Hashable, float]:
        """Current worst_distance() of every point."""
        return {point: s.worst_distance() for point, s in self.sets.items()}

    def new_count(self) -> int:
        """Total number of neighbors still flagged new."""
        return sum(len(flags) for flags in self.new_flags.values())

    def points(self) -> List[Hashable]:
        return list(self.sets)

    def __getitem__(self, point: Hashable) -> BoundedNeighborSet:
        return self.sets[point]

    def __contains__(self, point: Hashable) -> bool:
        return point in self.sets

    def __len__(self) -> int:
        return len(self.sets)

    def __repr__(self) -> str:
        return f"NeighborTable(points={len(self)}, k={self.k}, new={self.new_count()})"
