"""Distance providers: precomputed matrices and lazily memoised coordinates."""

import threading
from typing import Dict, Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist, pdist, squareform

from mapper_core.config import config
from mapper_core.errors import ConfigurationError, DistanceError
from mapper_core.logging import get_logger

logger = get_logger("mapping.distances")


class PrecomputedDistances:
    """
    Wraps a full pairwise distance matrix.

    The matrix must be square, finite, non-negative, symmetric (within
    *atol*) and have a zero diagonal.
    """

    def __init__(self, matrix: np.ndarray, atol: Optional[float] = None):
        matrix = np.array(matrix, dtype=np.float64)
        atol = float(config.get("mapping.symmetry_atol") if atol is None else atol)

        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise DistanceError(f"expected a square matrix, got shape {matrix.shape}")
        if not np.all(np.isfinite(matrix)):
            raise DistanceError("matrix contains non-finite values")
        if np.any(matrix < 0):
            raise DistanceError("matrix contains negative distances")
        if not np.allclose(matrix, matrix.T, rtol=0.0, atol=atol):
            raise DistanceError("matrix is not symmetric")
        if np.any(np.abs(np.diag(matrix)) > atol):
            raise DistanceError("matrix diagonal is not zero")

        self._matrix = matrix
        self._matrix.setflags(write=False)

    @property
    def n_points(self) -> int:
        return self._matrix.shape[0]

    def distance(self, i: int, j: int) -> float:
        return float(self._matrix[i, j])

    def submatrix(self, indices: Sequence[int]) -> np.ndarray:
        idx = np.asarray(indices, dtype=np.int64)
        return self._matrix[np.ix_(idx, idx)]


class LazyDistances:
    """
    Computes distances from raw coordinates on demand.

    Full rows are memoised the first time a distance from that point is
    requested.  Each row is written once, under a lock, so concurrent
    readers never observe a partially filled cache.
    """

    def __init__(self, points: np.ndarray, metric: Optional[str] = None):
        points = np.array(points, dtype=np.float64)
        if points.ndim == 1:
            points = points.reshape(-1, 1)
        if points.ndim != 2:
            raise ConfigurationError("points", f"expected an (n, k) array, got shape {points.shape}")
        if not np.all(np.isfinite(points)):
            raise ConfigurationError("points", "coordinates contain non-finite values")

        self._points = points
        self._points.setflags(write=False)
        self.metric = metric or config.get("mapping.metric")
        self._rows: Dict[int, np.ndarray] = {}
        self._lock = threading.Lock()

        # Fail fast on an unknown metric name
        try:
            cdist(points[:1], points[:1], metric=self.metric)
        except ValueError as exc:
            raise ConfigurationError("metric", str(exc)) from exc

    @property
    def n_points(self) -> int:
        return self._points.shape[0]

    def _row(self, i: int) -> np.ndarray:
        row = self._rows.get(i)
        if row is not None:
            return row
        with self._lock:
            row = self._rows.get(i)
            if row is None:
                row = cdist(self._points[i : i + 1], self._points, metric=self.metric)[0]
                row.setflags(write=False)
                self._rows[i] = row
        return row

    def distance(self, i: int, j: int) -> float:
        if i == j:
            return 0.0
        return float(self._row(i)[j])

    def submatrix(self, indices: Sequence[int]) -> np.ndarray:
        idx = np.asarray(indices, dtype=np.int64)
        if idx.shape[0] < 2:
            return np.zeros((idx.shape[0], idx.shape[0]))
        return squareform(pdist(self._points[idx], metric=self.metric))

    @property
    def cached_rows(self) -> int:
        return len(self._rows)


def make_distance_provider(
    distance_matrix: Optional[np.ndarray] = None,
    points: Optional[np.ndarray] = None,
    metric: Optional[str] = None,
):
    """
    Build a distance provider from exactly one point representation.

    Raises:
        ConfigurationError: If both or neither representation is supplied.
    """
    if distance_matrix is not None and points is not None:
        raise ConfigurationError(
            "distance_matrix/points", "supply either a distance matrix or coordinates, not both"
        )
    if distance_matrix is None and points is None:
        raise ConfigurationError(
            "distance_matrix/points", "supply a distance matrix or a coordinate matrix"
        )

    if distance_matrix is not None:
        provider = PrecomputedDistances(distance_matrix)
        logger.debug("Using precomputed distances for %d points", provider.n_points)
        return provider

    provider = LazyDistances(points, metric=metric)
    logger.debug(
        "Using lazy '%s' distances for %d points", provider.metric, provider.n_points
    )
    return provider
