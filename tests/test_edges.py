"""Tests for mapping/nodes.py and mapping/edges.py."""

import numpy as np
import pytest

from mapper_core.types import Edge, Node, NodeID
from mapping.edges import (
    _partition_by_source,
    build_edges,
    build_edges_exhaustive,
    candidate_pairs,
    neighbor_offsets,
)
from mapping.nodes import NodeRegistry
from mapping.pipeline import MapperConfig, build_mapper_graph


def _node(node_id, cell, members):
    arr = np.array(members, dtype=np.int64)
    arr.setflags(write=False)
    return Node(id=NodeID(node_id), cell=cell, members=arr, summary=(0.0,))


# ── Types ──────────────────────────────────────────────────────

class TestEdgeType:
    def test_source_below_target(self):
        with pytest.raises(ValueError):
            Edge(NodeID(3), NodeID(1))
        with pytest.raises(ValueError):
            Edge(NodeID(2), NodeID(2))

    def test_ordering(self):
        edges = sorted([Edge(NodeID(1), NodeID(2)), Edge(NodeID(0), NodeID(5))])
        assert [e.as_tuple() for e in edges] == [(0, 5), (1, 2)]


# ── NodeRegistry ───────────────────────────────────────────────

class TestNodeRegistry:
    def test_ids_follow_enumeration(self):
        filter_values = np.arange(6, dtype=float).reshape(-1, 1)
        registry = NodeRegistry(filter_values)
        assert registry.add_cell((0,), [np.array([0, 1]), np.array([2])]) == [0, 1]
        assert registry.add_cell((1,), [np.array([2, 3, 4])]) == [2]
        nodes = registry.freeze()
        assert [n.id for n in nodes] == [0, 1, 2]
        assert [n.cell for n in nodes] == [(0,), (0,), (1,)]
        assert registry.nodes_in_cell == {(0,): (0, 1), (1,): (2,)}

    def test_summary_is_mean_filter_value(self):
        registry = NodeRegistry(np.array([[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]]))
        registry.add_cell((0, 0), [np.array([0, 2])])
        assert registry.nodes[0].summary == (2.0, 3.0)

    def test_cells_must_increase(self):
        registry = NodeRegistry(np.zeros((3, 1)))
        registry.add_cell((1,), [np.array([0])])
        with pytest.raises(ValueError):
            registry.add_cell((0,), [np.array([1])])

    def test_frozen_rejects_more(self):
        registry = NodeRegistry(np.zeros((2, 1)))
        registry.freeze()
        with pytest.raises(RuntimeError):
            registry.add_cell((0,), [np.array([0])])


# ── Candidate generation ───────────────────────────────────────

class TestCandidates:
    def test_offsets_1d(self):
        assert neighbor_offsets((1,)) == [(1,)]
        assert neighbor_offsets((2,)) == [(1,), (2,)]

    def test_offsets_2d(self):
        assert neighbor_offsets((1, 1)) == [(0, 1), (1, -1), (1, 0), (1, 1)]

    @pytest.mark.parametrize("dim", [1, 2, 3, 4])
    def test_offset_count(self, dim):
        assert len(neighbor_offsets((1,) * dim)) == (3 ** dim - 1) // 2

    def test_candidate_pairs(self):
        nodes_in_cell = {(0,): (0, 1), (1,): (2,), (3,): (3,)}
        assert candidate_pairs(nodes_in_cell, (1,)) == [(0, 1), (0, 2), (1, 2)]

    def test_partition_keeps_sources_together(self):
        pairs = [(0, 1), (0, 2), (0, 3), (1, 2), (2, 3), (2, 4), (3, 4)]
        chunks = _partition_by_source(pairs, 3)
        assert [p for chunk in chunks for p in chunk] == pairs
        sources = [{p[0] for p in chunk} for chunk in chunks]
        for a in range(len(sources)):
            for b in range(a + 1, len(sources)):
                assert not sources[a] & sources[b]


# ── Edge construction ──────────────────────────────────────────

class TestBuildEdges:
    def _chain(self):
        nodes = [
            _node(0, (0,), [0, 1, 2]),
            _node(1, (1,), [2, 3]),
            _node(2, (2,), [3, 4]),
            _node(3, (2,), [5]),
        ]
        nodes_in_cell = {(0,): (0,), (1,): (1,), (2,): (2, 3)}
        return nodes, nodes_in_cell

    def test_edges_and_weights(self):
        nodes, nodes_in_cell = self._chain()
        edges = build_edges(nodes, nodes_in_cell, (1,))
        assert edges == (Edge(NodeID(0), NodeID(1), 1), Edge(NodeID(1), NodeID(2), 1))

    def test_matches_exhaustive(self):
        nodes, nodes_in_cell = self._chain()
        assert build_edges(nodes, nodes_in_cell, (1,)) == build_edges_exhaustive(nodes)

    def test_workers_do_not_change_result(self):
        nodes, nodes_in_cell = self._chain()
        assert build_edges(nodes, nodes_in_cell, (1,), workers=3) == build_edges(
            nodes, nodes_in_cell, (1,)
        )


class TestPruningAgainstExhaustive:
    @pytest.mark.parametrize("intervals, overlap", [
        (6, 0), (6, 30), ([5, 7], [20, 45]), (8, 55), (6, 75),
    ])
    def test_pruned_equals_all_pairs(self, rng, intervals, overlap):
        points = rng.normal(size=(250, 2))
        graph = build_mapper_graph(
            points,
            MapperConfig(num_intervals=intervals, percent_overlap=overlap,
                         num_bins_when_clustering=10),
            points=points,
        )
        assert graph.edges == build_edges_exhaustive(graph.nodes)

    def test_no_edges_beyond_adjacent_cells(self, rng):
        points = rng.uniform(size=(300, 2))
        graph = build_mapper_graph(
            points, MapperConfig(num_intervals=5, percent_overlap=0), points=points
        )
        for edge in graph.edges:
            a = graph.nodes[edge.source].cell
            b = graph.nodes[edge.target].cell
            assert max(abs(x - y) for x, y in zip(a, b)) <= 1
