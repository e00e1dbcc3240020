"""
Edge construction by member-set intersection.

Only nodes whose cells can geometrically overlap are compared: cells whose
multi-indices differ by at most ``reach[k]`` in every dimension ``k``
(``reach`` is 1 for overlaps below 50%).  This pruning is the main saving
over the all-pairs test and never drops a true edge.
"""

import itertools
from typing import Dict, List, Sequence, Tuple

import numpy as np

from mapper_core.logging import get_logger
from mapper_core.types import CellIndex, Edge, Node, NodeID
from mapping.executor import run_ordered

logger = get_logger("mapping.edges")

Candidate = Tuple[int, int]


def neighbor_offsets(reach: Sequence[int]) -> List[Tuple[int, ...]]:
    """
    Lexicographically positive offsets within ``[-reach_k, reach_k]``.

    Visiting ``cell + offset`` for every such offset reaches each unordered
    pair of distinct nearby cells exactly once.
    """
    offsets = []
    for offset in itertools.product(*(range(-r, r + 1) for r in reach)):
        first = next((o for o in offset if o != 0), 0)
        if first > 0:
            offsets.append(offset)
    return offsets


def candidate_pairs(
    nodes_in_cell: Dict[CellIndex, Sequence[NodeID]], reach: Sequence[int]
) -> List[Candidate]:
    """Node pairs ``(i, j)``, ``i < j``, from equal or nearby cells, sorted."""
    offsets = neighbor_offsets(reach)
    pairs: List[Candidate] = []
    for cell in sorted(nodes_in_cell):
        ids = nodes_in_cell[cell]
        # Same cell: clusters are disjoint, but the contract is tested anyway
        pairs.extend(itertools.combinations(ids, 2))
        for offset in offsets:
            other = tuple(c + o for c, o in zip(cell, offset))
            other_ids = nodes_in_cell.get(other)
            if not other_ids:
                continue
            for a in ids:
                for b in other_ids:
                    pairs.append((a, b) if a < b else (b, a))
    pairs.sort()
    return pairs


def _test_pairs(nodes: Sequence[Node], pairs: Sequence[Candidate]) -> List[Edge]:
    edges = []
    for i, j in pairs:
        shared = np.intersect1d(nodes[i].members, nodes[j].members, assume_unique=True)
        if shared.shape[0]:
            edges.append(Edge(NodeID(i), NodeID(j), weight=int(shared.shape[0])))
    return edges


def _partition_by_source(pairs: List[Candidate], parts: int) -> List[List[Candidate]]:
    """Split sorted pairs into contiguous chunks without splitting a source id."""
    if parts <= 1 or len(pairs) <= 1:
        return [pairs]
    target = -(-len(pairs) // parts)
    chunks: List[List[Candidate]] = []
    start = 0
    while start < len(pairs):
        end = min(start + target, len(pairs))
        while end < len(pairs) and pairs[end][0] == pairs[end - 1][0]:
            end += 1
        chunks.append(pairs[start:end])
        start = end
    return chunks


def build_edges(
    nodes: Sequence[Node],
    nodes_in_cell: Dict[CellIndex, Sequence[NodeID]],
    reach: Sequence[int],
    workers: int = 1,
) -> Tuple[Edge, ...]:
    """
    Emit an edge for every nearby node pair whose member sets intersect.

    Args:
        nodes: Nodes indexed by id.
        nodes_in_cell: Node ids per surviving cell.
        reach: Per-dimension index offset beyond which cells cannot share
            points (see :attr:`mapping.cover.Cover.reach`).
        workers: Thread count for the intersection tests.

    Returns:
        Edges sorted by ``(source, target)``.
    """
    pairs = candidate_pairs(nodes_in_cell, reach)
    chunks = _partition_by_source(pairs, workers)
    results = run_ordered(
        lambda chunk: _test_pairs(nodes, chunk), chunks, workers=workers, label="edge"
    )

    edges = sorted(itertools.chain.from_iterable(results))
    logger.info("Tested %d candidate pairs, found %d edges", len(pairs), len(edges))
    return tuple(edges)


def build_edges_exhaustive(nodes: Sequence[Node]) -> Tuple[Edge, ...]:
    """Reference all-pairs edge computation, without cell pruning."""
    pairs = list(itertools.combinations(range(len(nodes)), 2))
    return tuple(_test_pairs(nodes, pairs))
