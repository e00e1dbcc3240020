"""
Overlapping hyperrectangular cover of the filter space.

The cover is the cartesian product of one interval list per filter
dimension.  Every dimension goes through the same code path, so 1-D, 2-D
and n-D filters are handled identically.
"""

import itertools
import math
import warnings
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from mapper_core.config import config
from mapper_core.errors import ConfigurationError, DegenerateInputWarning
from mapper_core.logging import get_logger
from mapper_core.types import CellIndex, CoverCell

logger = get_logger("mapping.cover")

ScalarOrVector = Union[int, float, Sequence[int], Sequence[float], np.ndarray]


@dataclass(frozen=True, eq=False)
class Cover:
    """
    Immutable cover: per-dimension intervals plus their cartesian product.

    Attributes:
        intervals: One ``(m_k, 2)`` array of ``[lo, hi]`` rows per dimension.
        cells: All cells in lexicographic multi-index order.
        percent_overlap: Effective overlap per dimension.
        degenerate_dims: Dimensions whose filter range was zero.
    """
    intervals: Tuple[np.ndarray, ...]
    cells: Tuple[CoverCell, ...]
    percent_overlap: Tuple[float, ...]
    degenerate_dims: Tuple[int, ...] = ()

    @property
    def dim(self) -> int:
        return len(self.intervals)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(iv.shape[0] for iv in self.intervals)

    @property
    def reach(self) -> Tuple[int, ...]:
        """
        Largest index offset per dimension at which two cells can intersect.

        Cells ``i`` and ``i + r`` of a dimension meet when the two symmetric
        expansions bridge ``r - 1`` base widths, i.e. when
        ``r - 1 <= p / (100 - p)``.  Below 50% overlap this is 1.
        """
        return tuple(
            int(math.floor(p / (100.0 - p) + 1e-9)) + 1 for p in self.percent_overlap
        )

    def flat_index(self, index: CellIndex) -> int:
        """Row-major position of *index* among all cells."""
        return int(np.ravel_multi_index(index, self.shape))

    def __len__(self) -> int:
        return len(self.cells)


def broadcast_parameter(
    name: str, value: ScalarOrVector, dim: int, dtype=float
) -> np.ndarray:
    """Broadcast a scalar to length *dim* or check a vector has length *dim*."""
    arr = np.asarray(value, dtype=np.float64)
    if arr.ndim == 0:
        arr = np.full(dim, float(arr))
    elif arr.ndim != 1 or arr.shape[0] != dim:
        raise ConfigurationError(
            name, f"expected a scalar or a length-{dim} vector, got shape {arr.shape}"
        )
    if dtype is int:
        if not np.all(np.isfinite(arr)) or np.any(arr != np.round(arr)):
            bad = int(np.flatnonzero(~np.isfinite(arr) | (arr != np.round(arr)))[0])
            raise ConfigurationError(name, f"must be an integer, got {arr[bad]!r}", bad)
        return arr.astype(np.int64)
    return arr


def validate_cover_parameters(
    dim: int, num_intervals: ScalarOrVector, percent_overlap: ScalarOrVector
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Check and broadcast cover parameters for a *dim*-dimensional filter.

    Raises:
        ConfigurationError: On a non-positive interval count or an overlap
            outside ``[0, 100)``; the error names the dimension.
    """
    intervals = broadcast_parameter("num_intervals", num_intervals, dim, dtype=int)
    overlaps = broadcast_parameter("percent_overlap", percent_overlap, dim)

    for k in range(dim):
        if intervals[k] <= 0:
            raise ConfigurationError(
                "num_intervals", f"must be positive, got {int(intervals[k])}", k
            )
        if not (0.0 <= overlaps[k] < 100.0):
            raise ConfigurationError(
                "percent_overlap", f"must lie in [0, 100), got {overlaps[k]!r}", k
            )
    return intervals, overlaps


def _dimension_intervals(
    column: np.ndarray, n_intervals: int, percent: float, degenerate_width: float
) -> Tuple[np.ndarray, bool]:
    lo, hi = float(column.min()), float(column.max())

    if hi == lo:
        half = 0.5 * degenerate_width * max(1.0, abs(lo))
        return np.array([[lo - half, lo + half]]), True

    edges = np.linspace(lo, hi, n_intervals + 1)
    edges[-1] = hi
    width = (hi - lo) / n_intervals
    expand = width * percent / (200.0 * (1.0 - percent / 100.0))

    bounds = np.column_stack([edges[:-1] - expand, edges[1:] + expand])
    np.clip(bounds, lo, hi, out=bounds)
    return bounds, False


def build_cover(
    filter_values: np.ndarray,
    num_intervals: ScalarOrVector,
    percent_overlap: ScalarOrVector,
    degenerate_width: Optional[float] = None,
) -> Cover:
    """
    Build the overlapping cover of *filter_values*.

    Each dimension's range ``[min_k, max_k]`` is split into
    ``num_intervals[k]`` equal base intervals which are then widened
    symmetrically so that back-to-back intervals overlap by exactly
    ``percent_overlap[k]`` percent of their expanded length.  The outer
    bounds are clipped to the filter range.  A constant dimension gets one
    interval of minimal nonzero width.

    Args:
        filter_values: ``(n, d)`` filter coordinates.
        num_intervals: Positive interval count, scalar or length-d.
        percent_overlap: Overlap in ``[0, 100)``, scalar or length-d.
        degenerate_width: Width used for a constant dimension.

    Returns:
        Cover with cells in lexicographic multi-index order.

    Raises:
        ConfigurationError: If the parameters are invalid.
    """
    filter_values = np.asarray(filter_values, dtype=np.float64)
    if filter_values.ndim != 2 or filter_values.shape[0] == 0:
        raise ConfigurationError(
            "filter_values", f"expected a nonempty (n, d) array, got shape {filter_values.shape}"
        )
    if not np.all(np.isfinite(filter_values)):
        raise ConfigurationError("filter_values", "filter contains non-finite values")
    dim = filter_values.shape[1]
    intervals, overlaps = validate_cover_parameters(dim, num_intervals, percent_overlap)
    if degenerate_width is None:
        degenerate_width = float(config.get("mapping.degenerate_width"))

    per_dim = []
    degenerate = []
    for k in range(dim):
        bounds, is_degenerate = _dimension_intervals(
            filter_values[:, k], int(intervals[k]), float(overlaps[k]), degenerate_width
        )
        if is_degenerate:
            degenerate.append(k)
            msg = f"Filter dimension {k} has zero range; using a single degenerate interval"
            logger.warning(msg)
            warnings.warn(msg, DegenerateInputWarning, stacklevel=2)
        bounds.setflags(write=False)
        per_dim.append(bounds)

    cells = tuple(
        CoverCell(
            index=index,
            lower=tuple(float(per_dim[k][i, 0]) for k, i in enumerate(index)),
            upper=tuple(float(per_dim[k][i, 1]) for k, i in enumerate(index)),
        )
        for index in itertools.product(*(range(b.shape[0]) for b in per_dim))
    )

    cover = Cover(
        intervals=tuple(per_dim),
        cells=cells,
        percent_overlap=tuple(float(p) for p in overlaps),
        degenerate_dims=tuple(degenerate),
    )
    logger.info(
        "Built cover: shape=%s, %d cells, overlap=%s",
        cover.shape, len(cells), list(cover.percent_overlap),
    )
    return cover
