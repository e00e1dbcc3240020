"""
Mapping pipeline — cover -> level sets -> clustering -> nodes -> edges.

``build_mapper_graph`` is a pure function of its inputs: a configuration
value goes in, an immutable MapperGraph comes out.  All input validation
happens before any cover or clustering work starts, and a failure in any
stage aborts the whole run.
"""

import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from mapper_core.config import config
from mapper_core.errors import ConfigurationError
from mapper_core.logging import get_logger
from mapping.clusterers import run_clusterer
from mapping.cover import build_cover, validate_cover_parameters
from mapping.distances import make_distance_provider
from mapping.edges import build_edges
from mapping.executor import run_ordered
from mapping.graph import MapperGraph
from mapping.level_sets import extract_level_sets
from mapping.nodes import NodeRegistry
from mapping.registry import ClustererRegistry, ClustererSelector, default_registry

logger = get_logger("mapping.pipeline")

Parameter = Union[int, float, Sequence[int], Sequence[float]]


def _as_parameter(value):
    if isinstance(value, np.ndarray):
        return tuple(value.tolist()) if value.ndim else value.item()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return value


@dataclass(frozen=True)
class MapperConfig:
    """
    Cover and clustering settings for one pipeline run.

    Fields left as None fall back to the ``mapping.*`` keys of the
    configuration file (see ``mapper_core.config.CONFIG_SCHEMA``).
    """
    num_intervals: Optional[Parameter] = None
    percent_overlap: Optional[Parameter] = None
    clusterer: Optional[ClustererSelector] = None
    num_bins_when_clustering: Optional[int] = None
    metric: Optional[str] = None
    workers: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "num_intervals", _as_parameter(self.num_intervals))
        object.__setattr__(self, "percent_overlap", _as_parameter(self.percent_overlap))

    def resolved(self) -> "MapperConfig":
        """Copy with every None replaced by its configured default."""
        return MapperConfig(
            num_intervals=self._get("num_intervals", "mapping.num_intervals"),
            percent_overlap=self._get("percent_overlap", "mapping.percent_overlap"),
            clusterer=self._get("clusterer", "mapping.clusterer"),
            num_bins_when_clustering=self._get(
                "num_bins_when_clustering", "mapping.num_bins_when_clustering"
            ),
            metric=self._get("metric", "mapping.metric"),
            workers=self._get("workers", "mapping.workers"),
        )

    def _get(self, attr: str, key: str) -> Any:
        value = getattr(self, attr)
        return value if value is not None else config.get(key)


class MapperConfigBuilder:
    """
    "Configure then compute" ergonomics over an immutable MapperConfig.

    Only the builder's draft mutates; every :meth:`build` call returns a
    fresh frozen MapperConfig.

    Example:
        >>> cfg = (MapperConfigBuilder()
        ...        .cover(num_intervals=5, percent_overlap=20)
        ...        .clustering("single-linkage", num_bins_when_clustering=10)
        ...        .build())
    """

    def __init__(self, base: Optional[MapperConfig] = None):
        self._draft: Dict[str, Any] = {}
        if base is not None:
            self._draft.update(base.__dict__)

    def cover(self, num_intervals: Optional[Parameter] = None,
              percent_overlap: Optional[Parameter] = None) -> "MapperConfigBuilder":
        if num_intervals is not None:
            self._draft["num_intervals"] = num_intervals
        if percent_overlap is not None:
            self._draft["percent_overlap"] = percent_overlap
        return self

    def clustering(self, clusterer: Optional[ClustererSelector] = None,
                   num_bins_when_clustering: Optional[int] = None) -> "MapperConfigBuilder":
        if clusterer is not None:
            self._draft["clusterer"] = clusterer
        if num_bins_when_clustering is not None:
            self._draft["num_bins_when_clustering"] = num_bins_when_clustering
        return self

    def metric(self, metric: str) -> "MapperConfigBuilder":
        self._draft["metric"] = metric
        return self

    def workers(self, workers: int) -> "MapperConfigBuilder":
        self._draft["workers"] = workers
        return self

    def build(self) -> MapperConfig:
        return MapperConfig(**self._draft)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _prepare_filter(filter_values: np.ndarray, n_points: int) -> np.ndarray:
    values = np.array(filter_values, dtype=np.float64)
    if values.ndim == 1:
        values = values.reshape(-1, 1)
    if values.ndim != 2 or values.shape[1] == 0:
        raise ConfigurationError(
            "filter_values", f"expected an (n, d) array with d >= 1, got shape {values.shape}"
        )
    if values.shape[0] == 0:
        raise ConfigurationError("filter_values", "no points supplied")
    if values.shape[0] != n_points:
        raise ConfigurationError(
            "filter_values",
            f"filter has {values.shape[0]} rows but the point set has {n_points} points",
        )
    if not np.all(np.isfinite(values)):
        bad_dim = int(np.flatnonzero(~np.all(np.isfinite(values), axis=0))[0])
        raise ConfigurationError("filter_values", "filter contains non-finite values", bad_dim)
    values.setflags(write=False)
    return values


def _check_workers(workers: Any) -> int:
    if isinstance(workers, bool) or not isinstance(workers, (int, np.integer)) or workers < 1:
        raise ConfigurationError("workers", f"must be a positive integer, got {workers!r}")
    return int(workers)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_mapper_graph(
    filter_values: np.ndarray,
    mapper_config: Optional[MapperConfig] = None,
    *,
    distance_matrix: Optional[np.ndarray] = None,
    points: Optional[np.ndarray] = None,
    registry: Optional[ClustererRegistry] = None,
) -> MapperGraph:
    """
    Build the Mapper graph of a point set.

    Args:
        filter_values: ``(n, d)`` (or ``(n,)``) filter coordinates, one row
            per point.
        mapper_config: Cover and clustering settings; None uses the
            configured defaults.
        distance_matrix: Full ``(n, n)`` pairwise distances.  Mutually
            exclusive with *points*.
        points: Raw ``(n, k)`` coordinates.  Mutually exclusive with
            *distance_matrix*.
        registry: Strategy registry used to resolve named clusterers.

    Returns:
        The immutable MapperGraph.

    Raises:
        ConfigurationError: On malformed or contradictory inputs, before any
            cover or clustering work.
        ClusteringContractError: If the clustering strategy fails or returns
            a non-partition for any cell.
    """
    cfg = (mapper_config or MapperConfig()).resolved()

    # --- validation (no computation before this block completes) ---
    distances = make_distance_provider(distance_matrix, points, metric=cfg.metric)
    values = _prepare_filter(filter_values, distances.n_points)
    validate_cover_parameters(values.shape[1], cfg.num_intervals, cfg.percent_overlap)
    workers = _check_workers(cfg.workers)

    if registry is None:
        registry = default_registry(cfg.num_bins_when_clustering)
    clusterer = registry.resolve(cfg.clusterer)

    start = time.time()
    logger.info(
        "Building Mapper graph: %d points, filter dim %d, intervals=%s, overlap=%s, clusterer=%s",
        values.shape[0], values.shape[1], cfg.num_intervals, cfg.percent_overlap, clusterer.name,
    )

    # --- cover and level sets ---
    cover = build_cover(values, cfg.num_intervals, cfg.percent_overlap)
    level_sets = extract_level_sets(values, cover, workers=workers)

    # --- clustering, one independent unit per level set ---
    clustered = run_ordered(
        lambda item: run_clusterer(clusterer, item[0].index, item[1], distances),
        list(level_sets),
        workers=workers,
        label="clustering",
    )

    # --- nodes in (cell, cluster) enumeration order ---
    registry_nodes = NodeRegistry(values)
    for (cell, _members), clusters in zip(level_sets, clustered):
        registry_nodes.add_cell(cell.index, clusters)
    nodes = registry_nodes.freeze()

    # --- edges ---
    edges = build_edges(nodes, registry_nodes.nodes_in_cell, cover.reach, workers=workers)

    graph = MapperGraph(nodes=nodes, edges=edges, cover=cover, level_sets=level_sets)
    logger.info(
        "Mapper graph complete in %.2fs: %d nodes, %d edges, %d components",
        time.time() - start, graph.num_nodes, graph.num_edges, graph.num_components,
    )
    return graph


class MappingPipeline:
    """
    Holds a MapperConfig and a strategy registry; each :meth:`run` is an
    independent, stateless build.

    Args:
        mapper_config: Cover and clustering settings.
        registry: Strategy registry (default: builtin strategies).
    """

    def __init__(
        self,
        mapper_config: Optional[MapperConfig] = None,
        registry: Optional[ClustererRegistry] = None,
    ):
        self.config = mapper_config or MapperConfig()
        self.registry = registry

    def with_config(self, **changes) -> "MappingPipeline":
        """New pipeline with some configuration fields replaced."""
        return MappingPipeline(replace(self.config, **changes), registry=self.registry)

    def run(
        self,
        filter_values: np.ndarray,
        distance_matrix: Optional[np.ndarray] = None,
        points: Optional[np.ndarray] = None,
    ) -> MapperGraph:
        return build_mapper_graph(
            filter_values,
            self.config,
            distance_matrix=distance_matrix,
            points=points,
            registry=self.registry,
        )
