"""Configuration for kNN graph builds.

Usage:
    from knngraph import build_index_from_vectors, KNNGraphConfig

    # Default config
    index = build_index_from_vectors(vectors, k=10)

    # Custom config
    config = KNNGraphConfig(k=15, rho=0.5, metric="cosine")
    index = build_index_from_vectors(vectors, config=config)

    # From file
    config = KNNGraphConfig.from_json("my_config.json")
"""

from typing import Dict, Any, Optional
import json
from dataclasses import dataclass, asdict

from knngraph.exceptions import InvalidParameterError
from knngraph.nndescent.distance import Metric


@dataclass
class KNNGraphConfig:
    """Configuration for NNDescent.

    Graph:
        k: Neighbors per point
        metric: Vector metric name (only used for vector inputs)

    Refinement:
        rho: Sample rate in (0, 1]; lower is faster with lower recall
        delta: Stop when an iteration makes fewer than delta * k * n updates
        max_iterations: Hard cap on refinement iterations
        seed: Random seed (same seed and n_jobs=1 give identical indexes)
        n_jobs: Worker threads for candidate building and local joins

    Small inputs:
        exact_threshold: Datasets with at most this many points are indexed by
            brute force (0 always runs NNDescent)
    """

    k: int = 10
    rho: float = 1.0
    delta: float = 0.001
    max_iterations: int = 100
    seed: int = 0
    n_jobs: int = 1
    metric: str = "euclidean"
    exact_threshold: int = 32

    # Metadata
    config_name: str = "default"
    description: Optional[str] = None

    def __post_init__(self):
        """Validate configuration."""
        if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
            raise InvalidParameterError(f"k must be a positive integer, got {self.k!r}")

        if not 0.0 < self.rho <= 1.0:
            raise InvalidParameterError(f"rho must be in (0, 1], got {self.rho}")

        if not 0.0 < self.delta < 1.0:
            raise InvalidParameterError(f"delta must be in (0, 1), got {self.delta}")

        if self.max_iterations < 1:
            raise InvalidParameterError("max_iterations must be >= 1")

        if self.n_jobs < 1:
            raise InvalidParameterError("n_jobs must be >= 1")

        if self.exact_threshold < 0:
            raise InvalidParameterError("exact_threshold must be >= 0")

        valid_metrics = [m.value for m in Metric]
        if self.metric not in valid_metrics:
            raise InvalidParameterError(f"metric must be one of {valid_metrics}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    def to_json(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'KNNGraphConfig':
        """Load configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_json(cls, filepath: str) -> 'KNNGraphConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"KNNGraphConfig("
            f"{self.config_name}, "
            f"k={self.k}, rho={self.rho}, delta={self.delta}, "
            f"metric={self.metric})"
        )


# Preset configurations

def get_default_config() -> KNNGraphConfig:
    """Default configuration (full sampling, delta=0.001)."""
    return KNNGraphConfig(config_name="default")


def get_fast_config() -> KNNGraphConfig:
    """Half sampling and an earlier stop. Roughly halves the work for a small recall loss."""
    return KNNGraphConfig(config_name="fast", rho=0.5, delta=0.01)


def get_exact_check_config() -> KNNGraphConfig:
    """Run refinement until (almost) nothing changes.

    Meant for small datasets when comparing against the brute force index.
    """
    return KNNGraphConfig(
        config_name="exact_check",
        delta=1e-9,
        max_iterations=1000,
    )
