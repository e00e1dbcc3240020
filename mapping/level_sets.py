"""Level set extraction: which points fall inside which cover cell."""

import warnings
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

import numpy as np

from mapper_core.errors import DegenerateInputWarning
from mapper_core.logging import get_logger
from mapper_core.types import CellIndex, CoverCell
from mapping.cover import Cover
from mapping.executor import run_ordered

logger = get_logger("mapping.level_sets")


@dataclass(frozen=True, eq=False)
class LevelSets:
    """
    Nonempty level sets keyed by cell multi-index, in lexicographic order.

    ``members[cell]`` is a sorted read-only int64 array of point indices.
    The face adjacency below is reported only; edge construction scans the
    full Chebyshev neighbourhood so that diagonal edges are kept.
    """
    cover: Cover
    cells: Tuple[CoverCell, ...]
    members: Dict[CellIndex, np.ndarray]
    n_points: int

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Tuple[CoverCell, np.ndarray]]:
        for cell in self.cells:
            yield cell, self.members[cell.index]

    def __contains__(self, index: CellIndex) -> bool:
        return index in self.members

    def face_adjacent_pairs(self) -> List[Tuple[CellIndex, CellIndex]]:
        """
        Pairs of surviving cells whose multi-indices differ by exactly 1 in
        exactly one coordinate, each pair listed once as ``(lower, upper)``.
        """
        pairs = []
        for cell in self.cells:
            for k in range(len(cell.index)):
                other = cell.index[:k] + (cell.index[k] + 1,) + cell.index[k + 1:]
                if other in self.members:
                    pairs.append((cell.index, other))
        return pairs

    def point_counts(self) -> np.ndarray:
        """Number of level sets each point belongs to."""
        counts = np.zeros(self.n_points, dtype=np.int64)
        for idx in self.members.values():
            counts[idx] += 1
        return counts


def _dimension_masks(filter_values: np.ndarray, cover: Cover) -> List[np.ndarray]:
    """Per dimension, an ``(m_k, n)`` closed-interval membership mask."""
    masks = []
    for k, bounds in enumerate(cover.intervals):
        column = filter_values[:, k]
        masks.append(
            (column[None, :] >= bounds[:, 0:1]) & (column[None, :] <= bounds[:, 1:2])
        )
    return masks


def extract_level_sets(
    filter_values: np.ndarray, cover: Cover, workers: int = 1
) -> LevelSets:
    """
    Collect, for every cell, the points whose filter coordinates lie in the
    cell's closed bounds.  Empty cells are dropped.

    Args:
        filter_values: ``(n, d)`` filter coordinates.
        cover: Cover built from the same filter values.
        workers: Thread count for the per-cell scan.

    Returns:
        LevelSets holding only nonempty cells, in lexicographic order.
    """
    filter_values = np.asarray(filter_values, dtype=np.float64)
    masks = _dimension_masks(filter_values, cover)

    def scan(cell: CoverCell) -> np.ndarray:
        mask = masks[0][cell.index[0]].copy()
        for k in range(1, len(cell.index)):
            mask &= masks[k][cell.index[k]]
        return np.flatnonzero(mask).astype(np.int64)

    scanned = run_ordered(scan, cover.cells, workers=workers, label="level-set")

    cells = []
    members: Dict[CellIndex, np.ndarray] = {}
    singletons = 0
    for cell, idx in zip(cover.cells, scanned):
        if idx.shape[0] == 0:
            logger.debug("Cell %s is empty, dropped", cell.index)
            continue
        if idx.shape[0] == 1:
            singletons += 1
        idx.setflags(write=False)
        cells.append(cell)
        members[cell.index] = idx

    level_sets = LevelSets(
        cover=cover, cells=tuple(cells), members=members, n_points=filter_values.shape[0]
    )

    if singletons:
        msg = f"{singletons} level set(s) contain a single point"
        logger.warning(msg)
        warnings.warn(msg, DegenerateInputWarning, stacklevel=2)

    logger.info(
        "Extracted %d nonempty level sets out of %d cells", len(cells), len(cover)
    )
    return level_sets
