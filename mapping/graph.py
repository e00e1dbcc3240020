"""
The immutable Mapper graph and its export shapes.

A MapperGraph is assembled once by the pipeline and handed to the caller;
nothing on it mutates afterwards.  Derived views (adjacency matrix,
components) are recomputed on request.
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from mapper_core.types import CellIndex, Edge, Node, NodeID
from mapping.cover import Cover
from mapping.level_sets import LevelSets


@dataclass(frozen=True, eq=False)
class LegacyMapperOutput:
    """
    The older result shape: adjacency matrix plus per-vertex member lists.

    ``level_of_vertex``, ``points_in_level_set`` and
    ``vertices_in_level_set`` use the row-major flat index of each cover
    cell; cells without points have empty lists.
    """
    adjacency: np.ndarray
    num_vertices: int
    points_in_vertex: List[List[int]]
    level_of_vertex: List[int]
    points_in_level_set: List[List[int]]
    vertices_in_level_set: List[List[int]]
    level_shape: Tuple[int, ...]


@dataclass(frozen=True, eq=False)
class MapperGraph:
    """Nodes, edges and the cover they came from."""
    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]
    cover: Cover
    level_sets: LevelSets

    # ------------------------------------------------------------------
    # Basic accessors
    # ------------------------------------------------------------------

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    def members(self, node_id: NodeID) -> np.ndarray:
        return self.nodes[node_id].members

    def summary(self, node_id: NodeID) -> Tuple[float, ...]:
        return self.nodes[node_id].summary

    def edge_list(self) -> List[Tuple[int, int]]:
        return [edge.as_tuple() for edge in self.edges]

    def neighbors(self, node_id: NodeID) -> List[int]:
        out = []
        for edge in self.edges:
            if edge.source == node_id:
                out.append(int(edge.target))
            elif edge.target == node_id:
                out.append(int(edge.source))
        return sorted(out)

    def adjacency_matrix(self) -> np.ndarray:
        """Symmetric, zero-diagonal 0/1 matrix over node ids."""
        n = self.num_nodes
        adjacency = np.zeros((n, n), dtype=np.uint8)
        if self.edges:
            pairs = np.array(self.edge_list(), dtype=np.int64)
            adjacency[pairs[:, 0], pairs[:, 1]] = 1
            adjacency[pairs[:, 1], pairs[:, 0]] = 1
        return adjacency

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def _adjacency_lists(self) -> List[List[int]]:
        adj: List[List[int]] = [[] for _ in range(self.num_nodes)]
        for edge in self.edges:
            adj[edge.source].append(int(edge.target))
            adj[edge.target].append(int(edge.source))
        return adj

    def connected_components(self) -> List[List[int]]:
        """Components as sorted node-id lists, ordered by smallest id (BFS)."""
        adj = self._adjacency_lists()
        visited = [False] * self.num_nodes
        components = []
        for start in range(self.num_nodes):
            if visited[start]:
                continue
            visited[start] = True
            queue = deque([start])
            component = []
            while queue:
                current = queue.popleft()
                component.append(current)
                for neighbor in adj[current]:
                    if not visited[neighbor]:
                        visited[neighbor] = True
                        queue.append(neighbor)
            components.append(sorted(component))
        return components

    @property
    def num_components(self) -> int:
        return len(self.connected_components())

    @property
    def cycle_rank(self) -> int:
        """Number of independent cycles: ``E - V + C``."""
        return self.num_edges - self.num_nodes + self.num_components

    def isolated_nodes(self) -> List[int]:
        return [i for i, adj in enumerate(self._adjacency_lists()) if not adj]

    def nodes_in_cell(self) -> Dict[CellIndex, List[int]]:
        out: Dict[CellIndex, List[int]] = {}
        for node in self.nodes:
            out.setdefault(node.cell, []).append(int(node.id))
        return out

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_legacy(self) -> LegacyMapperOutput:
        """Adjacency matrix plus member lists indexed by node id."""
        n_cells = len(self.cover)
        points_in_level_set: List[List[int]] = [[] for _ in range(n_cells)]
        vertices_in_level_set: List[List[int]] = [[] for _ in range(n_cells)]
        for cell, members in self.level_sets:
            points_in_level_set[self.cover.flat_index(cell.index)] = members.tolist()

        level_of_vertex = []
        for node in self.nodes:
            flat = self.cover.flat_index(node.cell)
            level_of_vertex.append(flat)
            vertices_in_level_set[flat].append(int(node.id))

        return LegacyMapperOutput(
            adjacency=self.adjacency_matrix(),
            num_vertices=self.num_nodes,
            points_in_vertex=[node.members.tolist() for node in self.nodes],
            level_of_vertex=level_of_vertex,
            points_in_level_set=points_in_level_set,
            vertices_in_level_set=vertices_in_level_set,
            level_shape=self.cover.shape,
        )

    def stats(self) -> Dict[str, Any]:
        return {
            "num_nodes": self.num_nodes,
            "num_edges": self.num_edges,
            "num_components": self.num_components,
            "cycle_rank": self.cycle_rank,
            "num_cells": len(self.cover),
            "num_level_sets": len(self.level_sets),
            "cover_shape": list(self.cover.shape),
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        return {
            "nodes": [
                {
                    "id": int(node.id),
                    "cell": list(node.cell),
                    "size": node.size,
                    "summary": list(node.summary),
                    "members": node.members.tolist(),
                }
                for node in self.nodes
            ],
            "edges": [
                {"source": int(e.source), "target": int(e.target), "weight": e.weight}
                for e in self.edges
            ],
            "stats": self.stats(),
        }
