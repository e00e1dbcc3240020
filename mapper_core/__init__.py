"""
mapper_core — minimal core library for Mapper graph construction.

Every pipeline module imports from this package.  It provides:
- Domain types (PointIndex, NodeID, CoverCell, Node, Edge)
- Protocol definitions (DistanceAccessor, ClusteringStrategy)
- Singleton configuration loader
- Custom exception hierarchy
- Structured JSON logger

This package contains **zero** pipeline logic — only primitives and
contracts.
"""

# Errors — import first, no internal deps
from mapper_core.errors import (
    ClusteringContractError,
    ConfigurationError,
    DegenerateInputWarning,
    DistanceError,
    MapperError,
)

# Logging
from mapper_core.logging import get_logger

# Configuration
from mapper_core.config import CONFIG_SCHEMA, Config, config

# Domain types
from mapper_core.types import CellIndex, CoverCell, Edge, Node, NodeID, PointIndex

# Protocols
from mapper_core.protocols import ClusteringStrategy, DistanceAccessor

__all__ = [
    # Errors
    "MapperError",
    "ConfigurationError",
    "DistanceError",
    "ClusteringContractError",
    "DegenerateInputWarning",
    # Logging
    "get_logger",
    # Config
    "CONFIG_SCHEMA",
    "Config",
    "config",
    # Types
    "PointIndex",
    "NodeID",
    "CellIndex",
    "CoverCell",
    "Node",
    "Edge",
    # Protocols
    "DistanceAccessor",
    "ClusteringStrategy",
]
