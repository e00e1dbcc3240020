"""
Mapping module: Mapper graph construction.

Builds a topological summary of a point cloud:
- Overlapping n-dimensional cover of the filter image
- Level set extraction per cover cell
- Pluggable clustering per level set (single-linkage by default)
- Nodes per cluster, edges between intersecting clusters
"""

from mapping.protocols import Clusterer
from mapping.clusterers import (
    FunctionClusterer,
    HDBSCANClusterer,
    SingleLinkageClusterer,
    WholeLevelSetClusterer,
)
from mapping.cover import Cover, build_cover
from mapping.distances import LazyDistances, PrecomputedDistances, make_distance_provider
from mapping.edges import build_edges, build_edges_exhaustive
from mapping.graph import LegacyMapperOutput, MapperGraph
from mapping.level_sets import LevelSets, extract_level_sets
from mapping.nodes import NodeRegistry
from mapping.pipeline import (
    MapperConfig,
    MapperConfigBuilder,
    MappingPipeline,
    build_mapper_graph,
)
from mapping.registry import ClustererRegistry, default_registry

__all__ = [
    # Protocols
    'Clusterer',
    # Pipeline
    'MapperConfig',
    'MapperConfigBuilder',
    'MappingPipeline',
    'build_mapper_graph',
    'ClustererRegistry',
    'default_registry',
    # Stages
    'Cover',
    'build_cover',
    'LevelSets',
    'extract_level_sets',
    'NodeRegistry',
    'build_edges',
    'build_edges_exhaustive',
    'MapperGraph',
    'LegacyMapperOutput',
    # Distances
    'PrecomputedDistances',
    'LazyDistances',
    'make_distance_provider',
    # Built-in components
    'SingleLinkageClusterer',
    'WholeLevelSetClusterer',
    'HDBSCANClusterer',
    'FunctionClusterer',
]
