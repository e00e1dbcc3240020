"""
Protocol definitions for mapper_core.

The pipeline programs against these protocols.  Implementations are
swappable: any object satisfying the structural contract is accepted.

Uses typing.Protocol (PEP 544) for structural subtyping: classes do NOT
need to inherit from these protocols, they just need matching signatures.
"""

from typing import Protocol, Sequence, runtime_checkable

import numpy as np


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------

@runtime_checkable
class DistanceAccessor(Protocol):
    """Read-only pairwise distances between point indices."""

    @property
    def n_points(self) -> int:
        ...

    def distance(self, i: int, j: int) -> float:
        """Distance between points *i* and *j*."""
        ...

    def submatrix(self, indices: Sequence[int]) -> np.ndarray:
        """
        Induced square distance block.

        Args:
            indices: Point indices (any order, no duplicates).

        Returns:
            ``(len(indices), len(indices))`` float64 array, rows/columns in
            the order of *indices*.
        """
        ...


# ---------------------------------------------------------------------------
# Clustering
# ---------------------------------------------------------------------------

@runtime_checkable
class ClusteringStrategy(Protocol):
    """Partitions one level set into clusters."""

    def cluster(
        self, indices: Sequence[int], distances: DistanceAccessor
    ) -> Sequence[Sequence[int]]:
        """
        Args:
            indices: Sorted point indices of one level set.
            distances: Accessor for pairwise distances.

        Returns:
            Disjoint nonempty subsets whose union is exactly *indices*.
        """
        ...
