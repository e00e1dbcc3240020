"""Abstract base classes for the mapping system."""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from mapper_core.protocols import DistanceAccessor


class Clusterer(ABC):
    """Protocol for partitioning one level set into clusters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique strategy name (e.g. 'single-linkage')."""
        ...

    @abstractmethod
    def cluster(
        self, indices: np.ndarray, distances: DistanceAccessor
    ) -> Sequence[Sequence[int]]:
        """
        Partition *indices* into disjoint nonempty clusters.

        Args:
            indices: Sorted, read-only int64 array of point indices.
            distances: Pairwise distance accessor for the whole point set.

        Returns:
            Clusters whose union is exactly *indices*.  The order of the
            returned clusters fixes the order of node ids within a cell.
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
