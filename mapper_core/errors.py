"""
Custom exception hierarchy for mapper_core.

Every fatal condition raises a subclass of MapperError carrying enough
context (parameter, dimension, cell) to locate the offending input.
Non-fatal degenerate inputs are reported with DegenerateInputWarning.
"""

from typing import Optional, Tuple


class MapperError(Exception):
    """Base exception for all mapper errors."""


class ConfigurationError(MapperError):
    """Raised when an input parameter is malformed or contradictory."""

    def __init__(self, parameter: str, reason: str, dimension: Optional[int] = None):
        self.parameter = parameter
        self.reason = reason
        self.dimension = dimension
        where = f" (dimension {dimension})" if dimension is not None else ""
        super().__init__(f"Configuration error for '{parameter}'{where}: {reason}")


class DistanceError(ConfigurationError):
    """Raised when a precomputed distance matrix violates metric structure."""

    def __init__(self, reason: str):
        super().__init__("distance_matrix", reason)


class ClusteringContractError(MapperError):
    """Raised when a clustering strategy returns a non-partition or fails."""

    def __init__(self, cell: Tuple[int, ...], strategy: str, detail: str):
        self.cell = tuple(cell)
        self.strategy = strategy
        super().__init__(
            f"Clustering strategy '{strategy}' broke the partition contract "
            f"in cell {self.cell}: {detail}"
        )


class DegenerateInputWarning(UserWarning):
    """Non-fatal: constant filter dimension, singleton level set, etc."""
