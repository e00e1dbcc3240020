"""Builtin filter functions computed from a distance provider."""

from typing import Callable, Dict

import numpy as np

from mapper_core.errors import ConfigurationError
from mapper_core.protocols import DistanceAccessor


def eccentricity(distances: DistanceAccessor, exponent: float = 1.0) -> np.ndarray:
    """
    ``(mean_j d(i, j)^p)^(1/p)`` for every point *i*.

    Central points get small values, peripheral points large ones.
    """
    if exponent <= 0:
        raise ConfigurationError("exponent", f"must be positive, got {exponent!r}")
    full = distances.submatrix(np.arange(distances.n_points))
    if np.isinf(exponent):
        return full.max(axis=1)
    return np.mean(full ** exponent, axis=1) ** (1.0 / exponent)


def distance_to_point(distances: DistanceAccessor, index: int = 0) -> np.ndarray:
    """Distance from every point to the point at *index*."""
    n = distances.n_points
    if not 0 <= index < n:
        raise ConfigurationError("index", f"must lie in [0, {n}), got {index}")
    return np.array([distances.distance(index, j) for j in range(n)])


def coordinate(points: np.ndarray, column: int = 0) -> np.ndarray:
    """Projection of raw coordinates onto one column."""
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1:
        points = points.reshape(-1, 1)
    if not 0 <= column < points.shape[1]:
        raise ConfigurationError("column", f"must lie in [0, {points.shape[1]}), got {column}")
    return points[:, column].copy()


DISTANCE_FILTERS: Dict[str, Callable[..., np.ndarray]] = {
    "eccentricity": eccentricity,
    "distance-to-point": distance_to_point,
}
