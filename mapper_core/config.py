"""
Singleton configuration loader for mapper_core.

Reads mapper.json once and provides dot-notation access.  Every key the
pipeline reads has a typed default in CONFIG_SCHEMA; values in mapper.json
always take precedence.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from mapper_core.errors import ConfigurationError
from mapper_core.logging import get_logger

logger = get_logger("mapper_core.config")

CONFIG_FILE = "mapper.json"

# Centralized default values for all config keys used across the codebase.
# Each entry: (type, default_value)
CONFIG_SCHEMA: Dict[str, tuple] = {
    # Paths
    "paths.logs_dir":                   (str,   "logs"),

    # Cover
    "mapping.num_intervals":            (int,   10),
    "mapping.percent_overlap":          (float, 50.0),
    "mapping.degenerate_width":         (float, 1e-9),

    # Clustering
    "mapping.clusterer":                (str,   "single-linkage"),
    "mapping.num_bins_when_clustering": (int,   10),
    "mapping.hdbscan.min_cluster_size": (int,   5),

    # Distances
    "mapping.metric":                   (str,   "euclidean"),
    "mapping.symmetry_atol":            (float, 1e-8),

    # Execution
    "mapping.workers":                  (int,   1),

    # Output
    "mapping.output_path":              (str,   "./data/mapper_graph.json"),
}


class Config:
    """Singleton configuration backed by mapper.json."""

    _instance: Optional["Config"] = None
    _data: Dict[str, Any]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            inst = super().__new__(cls)
            inst._data = {}
            inst._load()
            cls._instance = inst
        return cls._instance

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> None:
        config_path = Path(CONFIG_FILE)
        if not config_path.exists():
            logger.debug("%s not found, using schema defaults", CONFIG_FILE)
            self._data = {}
            return

        with open(config_path, "r") as fh:
            self._data = json.load(fh)

        logger.info("Loaded configuration from %s", CONFIG_FILE)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value by dot-separated key (e.g. ``"mapping.workers"``).

        Lookup order:
        1. Value from mapper.json (if present and not None).
        2. Caller-supplied *default* (if not None).
        3. Schema default from CONFIG_SCHEMA.
        4. None.
        """
        value = self._traverse(key)
        if value is not None:
            return value
        if default is not None:
            return default
        schema_entry = CONFIG_SCHEMA.get(key)
        if schema_entry is not None:
            return schema_entry[1]
        return None

    def require(self, key: str) -> Any:
        """
        Like :meth:`get` but without fallbacks; raises
        :class:`ConfigurationError` when mapper.json lacks the value.
        """
        value = self._traverse(key)
        if value is None:
            logger.error("Missing required config key: %s", key)
            raise ConfigurationError(key, "missing from " + CONFIG_FILE)
        return value

    def validate(self) -> List[str]:
        """
        Validates the loaded config against CONFIG_SCHEMA.

        Returns a list of warning strings for type mismatches.
        Does NOT raise: mapper.json values always take precedence.
        """
        warnings = []
        for key, (expected_type, _default) in CONFIG_SCHEMA.items():
            value = self._traverse(key)
            if value is None:
                continue
            # JSON has no int/float distinction worth failing on
            if expected_type is float and isinstance(value, int) and not isinstance(value, bool):
                continue
            if not isinstance(value, expected_type):
                warnings.append(
                    f"Config '{key}': expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )
        for w in warnings:
            logger.warning(w)
        return warnings

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _traverse(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict):
                node = node.get(part)
            else:
                return None
            if node is None:
                return None
        return node

    def __repr__(self) -> str:
        return f"<Config keys={list(self._data.keys())}>"


# Module-level singleton
config = Config()
