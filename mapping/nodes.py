"""Node materialisation: one node per (cell, cluster) pair."""

from typing import Dict, List, Sequence, Tuple

import numpy as np

from mapper_core.logging import get_logger
from mapper_core.types import CellIndex, Node, NodeID

logger = get_logger("mapping.nodes")


class NodeRegistry:
    """
    Allocates nodes with monotonically increasing ids.

    Callers must add cells in lexicographic multi-index order and clusters
    in the order the clusterer returned them; ids then follow that fixed
    enumeration.  Once :meth:`freeze` is called no more nodes can be added.

    Args:
        filter_values: ``(n, d)`` filter coordinates used for the per-node
            summary (mean filter coordinate).
    """

    def __init__(self, filter_values: np.ndarray):
        self._filter_values = np.asarray(filter_values, dtype=np.float64)
        self._nodes: List[Node] = []
        self._nodes_in_cell: Dict[CellIndex, List[NodeID]] = {}
        self._last_cell: Tuple[int, ...] = ()
        self._frozen = False

    def add_cell(self, cell: CellIndex, clusters: Sequence[np.ndarray]) -> List[NodeID]:
        """Create one node per cluster of *cell*; returns the new ids."""
        if self._frozen:
            raise RuntimeError("NodeRegistry is frozen")
        if self._nodes_in_cell and cell <= self._last_cell:
            raise ValueError(
                f"cells must be added in increasing order: {cell} after {self._last_cell}"
            )

        ids = []
        for members in clusters:
            node_id = NodeID(len(self._nodes))
            summary = tuple(float(v) for v in self._filter_values[members].mean(axis=0))
            self._nodes.append(
                Node(id=node_id, cell=tuple(cell), members=members, summary=summary)
            )
            ids.append(node_id)

        self._nodes_in_cell[tuple(cell)] = ids
        self._last_cell = tuple(cell)
        return ids

    def freeze(self) -> Tuple[Node, ...]:
        """Stop accepting nodes and return them in id order."""
        self._frozen = True
        logger.info(
            "Registered %d nodes across %d cells", len(self._nodes), len(self._nodes_in_cell)
        )
        return tuple(self._nodes)

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes)

    @property
    def nodes_in_cell(self) -> Dict[CellIndex, Tuple[NodeID, ...]]:
        return {cell: tuple(ids) for cell, ids in self._nodes_in_cell.items()}

    def __len__(self) -> int:
        return len(self._nodes)
