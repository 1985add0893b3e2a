"""Structural checks for built kNN indexes.

Verifies the properties every index must have regardless of how well it
approximates the true neighbors (list sizes, ordering, no duplicates or self
references) and reports graph statistics such as in-degree spread and
connectivity.
"""

from collections import deque
from typing import Dict, Hashable, List, Set

from knngraph.index import KNNIndex


class IndexValidator:
    """Validates a KNNIndex and computes statistics over its neighbor graph.

    The kNN graph is directed (p -> q when q is a neighbor of p). Connectivity is
    checked on its undirected version.
    """

    def __init__(self, index: KNNIndex) -> None:
        """Initialize the validator.

        Args:
            index: Index to inspect
        """
        self.index = index

        # Undirected adjacency of the kNN graph
        self.graph: Dict[Hashable, Set[Hashable]] = {point: set() for point in index}
        for point in index:
            for neighbor in index.neighbor_ids(point):
                if neighbor in self.graph:
                    self.graph[point].add(neighbor)
                    self.graph[neighbor].add(point)

    def find_violations(self) -> List[str]:
        """List every broken invariant.

        Returns:
            Human readable problems (empty when the index is valid)
        """
        problems: List[str] = []
        k = self.index.k
        expected_size = min(k, len(self.index) - 1)

        for point in self.index:
            entries = self.index.neighbors_of(point)
            ids = [entry.id for entry in entries]

            if len(entries) > k:
                problems.append(f"{point!r}: {len(entries)} neighbors exceeds k={k}")
            if len(set(ids)) != len(ids):
                problems.append(f"{point!r}: duplicate neighbors")
            if point in ids:
                problems.append(f"{point!r}: lists itself as a neighbor")
            if list(entries) != sorted(entries):
                problems.append(f"{point!r}: neighbors not sorted by distance")
            unknown = [i for i in ids if i not in self.index]
            if unknown:
                problems.append(f"{point!r}: unknown neighbor ids {unknown}")
            if len(entries) < expected_size:
                problems.append(
                    f"{point!r}: only {len(entries)} neighbors, expected {expected_size}"
                )

        return problems

    def is_valid(self) -> bool:
        return not self.find_violations()

    def in_degrees(self) -> Dict[Hashable, int]:
        """How often every point appears in other points' neighbor lists."""
        degrees = {point: 0 for point in self.index}
        for point in self.index:
            for neighbor in self.index.neighbor_ids(point):
                if neighbor in degrees:
                    degrees[neighbor] += 1
        return degrees

    def count_components(self) -> int:
        """Number of connected components of the undirected kNN graph.

        Uses BFS from every unvisited point.
        """
        visited: Set[Hashable] = set()
        components = 0

        for start in self.graph:
            if start in visited:
                continue
            components += 1
            queue: deque = deque([start])
            visited.add(start)

            while queue:
                current = queue.popleft()
                for neighbor in self.graph[current]:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        queue.append(neighbor)

        return components

    def get_graph_statistics(self) -> Dict[str, float]:
        """Compute overall graph statistics.

        Returns:
            Dictionary with point_count, edge_count, in-degree extremes and
            the number of connected components
        """
        if len(self.index) == 0:
            return {
                "point_count": 0,
                "edge_count": 0,
                "avg_in_degree": 0.0,
                "min_in_degree": 0,
                "max_in_degree": 0,
                "components": 0,
            }

        degrees = list(self.in_degrees().values())

        return {
            "point_count": len(self.index),
            "edge_count": sum(degrees),
            "avg_in_degree": sum(degrees) / len(degrees),
            "min_in_degree": min(degrees),
            "max_in_degree": max(degrees),
            "components": self.count_components(),
        }
