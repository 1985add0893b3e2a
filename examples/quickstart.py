"""Quick start guide for knngraph.

This example shows the minimal code needed to:
1. Build an approximate kNN graph over random vectors
2. Query neighbor lists
3. Compare against exact neighbors
"""

import logging
import time

import numpy as np
from knngraph import (
    KNNGraphConfig,
    build_index_from_vectors,
    exact_neighbors_from_vectors,
)
from knngraph.index_validator import IndexValidator


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    print("="*60)
    print("knngraph Quick Start")
    print("="*60)

    # Step 1: Create synthetic dataset
    print("\n1. Creating dataset...")
    rng = np.random.default_rng(42)
    vectors = rng.standard_normal((2000, 16)).astype(np.float32)
    print(f"   Created {len(vectors)} vectors of dimension {vectors.shape[1]}")

    # Step 2: Build the graph
    print("\n2. Building kNN graph with NNDescent...")
    config = KNNGraphConfig(k=10, rho=1.0, delta=0.001, seed=42)

    start = time.perf_counter()
    index = build_index_from_vectors(vectors, config=config)
    elapsed = time.perf_counter() - start

    print(f"   Status: {index.status.value} after {len(index.stats.iterations)} iterations")
    print(f"   Updates per iteration: {index.stats.updates_per_iteration}")
    print(f"   Scan rate: {index.stats.scan_rate(len(index)):.3f} of brute force")
    print(f"   Time: {elapsed:.1f}s")

    # Step 3: Query
    print("\n3. Neighbors of point 0:")
    for entry in index.neighbors_of(0)[:5]:
        print(f"   id={entry.id:5d}  distance={entry.distance:.4f}")

    # Step 4: Evaluate
    print("\n4. Comparing against exact neighbors...")
    approx_idx, _ = index.to_arrays()
    exact_idx, _ = exact_neighbors_from_vectors(vectors, k=config.k)
    recall = np.mean([
        len(set(approx_idx[i]) & set(exact_idx[i])) / config.k for i in range(len(vectors))
    ])
    print(f"   Recall@{config.k}: {recall:.3f}")

    stats = IndexValidator(index).get_graph_statistics()
    print(f"   Max in-degree: {stats['max_in_degree']}, components: {stats['components']}")


if __name__ == "__main__":
    main()
