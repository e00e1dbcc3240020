"""Clustering strategy registry: resolve a selector to a Clusterer."""

from typing import Callable, Dict, List, Optional, Union

from mapper_core.errors import ConfigurationError
from mapper_core.protocols import ClusteringStrategy
from mapping.clusterers import (
    FunctionClusterer,
    HDBSCANClusterer,
    SingleLinkageClusterer,
    WholeLevelSetClusterer,
)
from mapping.protocols import Clusterer

ClustererSelector = Union[str, Clusterer, ClusteringStrategy, Callable]


class ClustererRegistry:
    """Register and look up clustering strategies by name."""

    def __init__(self):
        self._clusterers: Dict[str, Clusterer] = {}

    def register(self, clusterer: Clusterer) -> None:
        """Register a strategy (replaces existing with same name)."""
        if not isinstance(clusterer, Clusterer):
            raise TypeError(f"Unknown component type: {type(clusterer)}")
        self._clusterers[clusterer.name] = clusterer

    def unregister(self, name: str) -> None:
        """Remove a strategy by name. No-op if not found."""
        self._clusterers.pop(name, None)

    def get(self, name: str) -> Optional[Clusterer]:
        return self._clusterers.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._clusterers.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._clusterers

    def __len__(self) -> int:
        return len(self._clusterers)

    def resolve(self, selector: ClustererSelector) -> Clusterer:
        """
        Turn a clustering selector into a Clusterer.

        Accepts a registered name, a Clusterer instance, any object with a
        ``cluster(indices, distances)`` method, or a plain callable with the
        same signature.

        Raises:
            ConfigurationError: For an unknown name or an unusable object.
        """
        if isinstance(selector, str):
            clusterer = self.get(selector)
            if clusterer is None:
                raise ConfigurationError(
                    "clusterer",
                    f"unknown strategy '{selector}' (available: {', '.join(self.names)})",
                )
            return clusterer
        if isinstance(selector, Clusterer):
            return selector
        if isinstance(selector, ClusteringStrategy):
            return FunctionClusterer(selector.cluster, name=type(selector).__name__)
        if callable(selector):
            return FunctionClusterer(selector)
        raise ConfigurationError(
            "clusterer", f"expected a strategy name or callable, got {type(selector).__name__}"
        )


def default_registry(num_bins_when_clustering: Optional[int] = None) -> ClustererRegistry:
    """Registry pre-populated with the builtin strategies."""
    registry = ClustererRegistry()
    registry.register(SingleLinkageClusterer(num_bins_when_clustering))
    registry.register(WholeLevelSetClusterer())
    registry.register(HDBSCANClusterer())
    return registry
