"""Built-in clusterer implementations and the partition contract check."""

import math
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

from mapper_core.config import config
from mapper_core.errors import ClusteringContractError, ConfigurationError
from mapper_core.logging import get_logger
from mapper_core.protocols import DistanceAccessor
from mapper_core.types import CellIndex
from mapping.protocols import Clusterer

logger = get_logger("mapping.clusterers")


def _group_labels(indices: np.ndarray, labels: np.ndarray) -> List[np.ndarray]:
    """Split *indices* by label; clusters ordered by their smallest member."""
    groups = [indices[labels == label] for label in np.unique(labels)]
    groups.sort(key=lambda g: int(g[0]))
    return groups


def histogram_gap_cutoff(
    heights: np.ndarray, diameter: float, num_bins: int
) -> float:
    """
    Pick a dendrogram cut height from the merge-height histogram.

    The merge heights plus the level set diameter are binned into
    *num_bins* equal bins over ``[min(heights), diameter]``.  The longest
    run of consecutive empty bins marks the gap between intra-cluster and
    inter-cluster merges; on ties the lower run wins.  The cut is the
    midpoint of the first bin of that run.

    Returns:
        The cut height, or ``math.inf`` when there is no empty bin or the
        height range is too narrow to split into *num_bins* bins (the level
        set is a single cluster).
    """
    heights = np.asarray(heights, dtype=np.float64)
    if heights.size == 0:
        return math.inf
    low = float(heights.min())
    if diameter <= low:
        return math.inf
    # Near-equal heights cannot hold num_bins finite bins: one cluster
    if diameter - low <= max(1e-9 * abs(diameter), num_bins * np.spacing(diameter)):
        return math.inf

    counts, edges = np.histogram(
        np.append(heights, diameter), bins=num_bins, range=(low, diameter)
    )

    best_start, best_len = -1, 0
    run_start, run_len = -1, 0
    for b, count in enumerate(counts):
        if count == 0:
            if run_len == 0:
                run_start = b
            run_len += 1
            if run_len > best_len:
                best_start, best_len = run_start, run_len
        else:
            run_len = 0

    if best_len == 0:
        return math.inf
    return 0.5 * float(edges[best_start] + edges[best_start + 1])


class SingleLinkageClusterer(Clusterer):
    """
    Single-linkage hierarchical clustering restricted to one level set.

    The dendrogram is cut at the height chosen by
    :func:`histogram_gap_cutoff`; clusters are the connected components of
    the "distance <= cut" graph.
    """

    def __init__(self, num_bins_when_clustering: Optional[int] = None):
        num_bins = num_bins_when_clustering
        if num_bins is None:
            num_bins = config.get("mapping.num_bins_when_clustering")
        if isinstance(num_bins, bool) or not isinstance(num_bins, (int, np.integer)) or num_bins <= 0:
            raise ConfigurationError(
                "num_bins_when_clustering", f"must be a positive integer, got {num_bins!r}"
            )
        self.num_bins = int(num_bins)

    @property
    def name(self) -> str:
        return "single-linkage"

    def cluster(self, indices: np.ndarray, distances: DistanceAccessor) -> List[np.ndarray]:
        indices = np.asarray(indices, dtype=np.int64)
        if indices.shape[0] <= 1:
            return [indices]

        block = distances.submatrix(indices)
        condensed = squareform(block, checks=False)
        merges = linkage(condensed, method="single")
        cut = histogram_gap_cutoff(merges[:, 2], float(condensed.max()), self.num_bins)

        if math.isinf(cut):
            return [indices]

        labels = fcluster(merges, t=cut, criterion="distance")
        return _group_labels(indices, labels)


class WholeLevelSetClusterer(Clusterer):
    """Treats every level set as one cluster."""

    @property
    def name(self) -> str:
        return "whole"

    def cluster(self, indices: np.ndarray, distances: DistanceAccessor) -> List[np.ndarray]:
        return [np.asarray(indices, dtype=np.int64)]


class HDBSCANClusterer(Clusterer):
    """HDBSCAN on the precomputed distance block; noise points become singletons."""

    def __init__(self, min_cluster_size: Optional[int] = None):
        if min_cluster_size is None:
            min_cluster_size = config.get("mapping.hdbscan.min_cluster_size")
        self._min_cluster_size = int(min_cluster_size)

    @property
    def name(self) -> str:
        return "hdbscan"

    def cluster(self, indices: np.ndarray, distances: DistanceAccessor) -> List[np.ndarray]:
        try:
            import hdbscan
        except ImportError:
            raise ImportError("hdbscan not installed. Run: pip install hdbscan")

        indices = np.asarray(indices, dtype=np.int64)
        n_points = indices.shape[0]
        if n_points < 2:
            return [indices]

        min_cluster = min(self._min_cluster_size, n_points)
        clusterer = hdbscan.HDBSCAN(
            min_cluster_size=max(2, min_cluster),
            metric="precomputed",
        )
        labels = np.asarray(
            clusterer.fit_predict(distances.submatrix(indices).astype(np.float64))
        )

        # Relabel noise so that each noise point is its own cluster
        noise = np.flatnonzero(labels == -1)
        labels = labels.copy()
        labels[noise] = labels.max() + 1 + np.arange(noise.shape[0])
        logger.debug(
            "HDBSCAN: %d clusters, %d noise points",
            len(np.unique(labels)) - noise.shape[0], noise.shape[0],
        )
        return _group_labels(indices, labels)


class FunctionClusterer(Clusterer):
    """Adapts a plain ``f(indices, distances)`` callable to the Clusterer ABC."""

    def __init__(self, fn: Callable[[np.ndarray, DistanceAccessor], Sequence[Sequence[int]]],
                 name: Optional[str] = None):
        self._fn = fn
        self._name = name or getattr(fn, "__name__", type(fn).__name__)

    @property
    def name(self) -> str:
        return self._name

    def cluster(self, indices: np.ndarray, distances: DistanceAccessor):
        return self._fn(indices, distances)


# ---------------------------------------------------------------------------
# Partition contract
# ---------------------------------------------------------------------------

def _as_index_array(members) -> np.ndarray:
    if isinstance(members, (set, frozenset)):
        members = sorted(members)
    arr = np.asarray(members)
    if arr.ndim != 1:
        raise ValueError(f"expected a 1-D index sequence, got shape {arr.shape}")
    if arr.size and arr.dtype.kind not in "iu":
        raise ValueError(f"expected integer indices, got dtype {arr.dtype}")
    return arr.astype(np.int64)


def validate_partition(
    cell: CellIndex, indices: np.ndarray, clusters, strategy: str
) -> Tuple[np.ndarray, ...]:
    """
    Check that *clusters* partitions *indices* exactly.

    Returns:
        The clusters as sorted read-only int64 arrays, in the order given.

    Raises:
        ClusteringContractError: On a subset that is not a 1-D integer
            sequence, an empty subset, duplicated or foreign indices,
            overlapping subsets, or missing indices.
    """
    if clusters is None:
        raise ClusteringContractError(cell, strategy, "returned None")

    try:
        arrays = [_as_index_array(c) for c in clusters]
    except (TypeError, ValueError) as exc:
        raise ClusteringContractError(cell, strategy, f"unreadable result: {exc}") from exc

    expected = np.asarray(indices, dtype=np.int64)
    seen = np.zeros(0, dtype=np.int64)
    result = []
    for pos, members in enumerate(arrays):
        if members.shape[0] == 0:
            raise ClusteringContractError(cell, strategy, f"cluster {pos} is empty")
        members = np.sort(members)
        if np.any(members[1:] == members[:-1]):
            raise ClusteringContractError(cell, strategy, f"cluster {pos} repeats an index")
        foreign = np.setdiff1d(members, expected, assume_unique=True)
        if foreign.shape[0]:
            raise ClusteringContractError(
                cell, strategy,
                f"cluster {pos} contains indices outside the level set: {foreign[:5].tolist()}",
            )
        shared = np.intersect1d(seen, members, assume_unique=True)
        if shared.shape[0]:
            raise ClusteringContractError(
                cell, strategy,
                f"cluster {pos} overlaps an earlier cluster on {shared[:5].tolist()}",
            )
        seen = np.union1d(seen, members)
        members.setflags(write=False)
        result.append(members)

    missing = np.setdiff1d(expected, seen, assume_unique=True)
    if missing.shape[0]:
        raise ClusteringContractError(
            cell, strategy, f"indices not assigned to any cluster: {missing[:5].tolist()}"
        )
    return tuple(result)


def run_clusterer(
    clusterer: Clusterer,
    cell: CellIndex,
    indices: np.ndarray,
    distances: DistanceAccessor,
) -> Tuple[np.ndarray, ...]:
    """Run *clusterer* on one level set and enforce the partition contract."""
    try:
        clusters = clusterer.cluster(indices, distances)
    except ClusteringContractError:
        raise
    except Exception as exc:
        raise ClusteringContractError(
            cell, clusterer.name, f"strategy raised {type(exc).__name__}: {exc}"
        ) from exc

    validated = validate_partition(cell, indices, clusters, clusterer.name)
    logger.debug(
        "Cell %s: %d points -> %d clusters", cell, indices.shape[0], len(validated)
    )
    return validated
