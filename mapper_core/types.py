"""
Domain types for mapper_core.

Lightweight NewType aliases and frozen dataclasses that define the
vocabulary of the pipeline.  Everything here is write-once: instances are
created during one pipeline run and never mutated afterwards.
"""

from dataclasses import dataclass
from typing import NewType, Tuple

import numpy as np

# ---------------------------------------------------------------------------
# Scalar type aliases
# ---------------------------------------------------------------------------

PointIndex = NewType("PointIndex", int)
"""Row index of a point in the caller's input arrays."""

NodeID = NewType("NodeID", int)
"""Graph node id, assigned once in enumeration order."""

CellIndex = Tuple[int, ...]
"""Multi-index ``(i_1, ..., i_d)`` of a cover cell."""


# ---------------------------------------------------------------------------
# Composite records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CoverCell:
    """
    One axis-aligned hyperrectangle of the cover.

    Membership is closed on both sides: a point lying exactly on a shared
    boundary belongs to both neighbouring cells.
    """
    index: CellIndex
    lower: Tuple[float, ...]
    upper: Tuple[float, ...]

    @property
    def dim(self) -> int:
        return len(self.index)

    def contains(self, filter_values: np.ndarray) -> np.ndarray:
        """Boolean mask over the rows of an ``(n, d)`` filter array."""
        lower = np.asarray(self.lower)
        upper = np.asarray(self.upper)
        return np.all((filter_values >= lower) & (filter_values <= upper), axis=1)

    def is_adjacent(self, other: "CoverCell") -> bool:
        """True if the multi-indices differ by at most 1 in every coordinate."""
        return all(abs(a - b) <= 1 for a, b in zip(self.index, other.index))


@dataclass(frozen=True, eq=False)
class Node:
    """
    A cluster of points inside one level set.

    ``members`` is a sorted, read-only int64 array of point indices into the
    caller's data; coordinates are never copied.
    """
    id: NodeID
    cell: CellIndex
    members: np.ndarray
    summary: Tuple[float, ...]

    @property
    def size(self) -> int:
        return int(self.members.shape[0])

    def member_set(self) -> frozenset:
        return frozenset(int(i) for i in self.members)

    def __repr__(self) -> str:
        return f"Node(id={self.id}, cell={self.cell}, size={self.size})"


@dataclass(frozen=True, order=True)
class Edge:
    """Unordered node pair stored with ``source < target``."""
    source: NodeID
    target: NodeID
    weight: int = 0

    def __post_init__(self):
        if self.source >= self.target:
            raise ValueError(
                f"Edge requires source < target, got ({self.source}, {self.target})"
            )

    def as_tuple(self) -> Tuple[int, int]:
        return (int(self.source), int(self.target))
