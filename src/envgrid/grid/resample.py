"""Area-weighted lookup of canonical grid values for arbitrary query cells.

A query cell (lower-left corner plus size) may be smaller or larger than the
source cells and need not be aligned with them. The value returned is the
mean of the overlapped source cells weighted by the true spherical area of
each overlap, ignoring cells that hold the missing value.
"""

import numpy as np

from envgrid.errors import CoverageError
from envgrid.grid.area import cell_area
from envgrid.types import CanonicalGrid, OverlapWindow, QueryResult

# Overlaps thinner than this fraction of a cell are rounding noise in the edges
SLIVER_FRACTION = 1e-9


def check_coverage(grid: CanonicalGrid, lat: float, lon: float) -> None:
    """Raise CoverageError unless (lat, lon) lies inside the grid's footprint.

    The lower bounds allow a sliver of rounding error in the grid's first edge.
    """
    if not grid.lat_min - SLIVER_FRACTION * grid.lat_step <= lat < grid.lat_max:
        raise CoverageError(
            f"Requested latitude {lat} is outside dataset latitude range "
            f"[{grid.lat_min}, {grid.lat_max})"
        )
    if not grid.lon_min - SLIVER_FRACTION * grid.lon_step <= lon < grid.lon_max:
        raise CoverageError(
            f"Requested longitude {lon} is outside dataset longitude range "
            f"[{grid.lon_min}, {grid.lon_max})"
        )


def _closest_at_or_below(edges: np.ndarray, x: float, tolerance: float = 0.0) -> int:
    """Index of the cell whose lower edge is nearest to x from below.

    Edges up to tolerance above x still count as at or below it. Falls back
    to the last index when no edge qualifies, clamping queries that run past
    the grid to the outermost band.
    """
    distance = x - edges
    candidates = np.flatnonzero(distance >= -tolerance)
    if candidates.size == 0:
        return edges.shape[0] - 1
    return int(candidates[np.argmin(distance[candidates])])


def _overlap_extents(
    edges: np.ndarray,
    step: float,
    lo: int,
    hi: int,
    start: float,
    size: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Lower edges and sizes of the overlap between [start, start+size) and cells lo..hi.

    Inner cells contribute their full extent; at the first and last cell the
    query's own bound applies. Negative and sliver extents count as zero, so a
    query on a cell boundary that differs from the grid edge by rounding error
    gets no weight from the neighbouring cell.
    """
    lower = np.array(edges[lo:hi + 1], dtype=np.float64)
    upper = lower + step
    lower[0] = start
    upper[-1] = start + size
    sizes = upper - lower
    sizes[sizes < SLIVER_FRACTION * step] = 0.0
    return lower, sizes


def overlap_window(
    grid: CanonicalGrid,
    lat: float,
    lon: float,
    lat_size: float,
    lon_size: float,
) -> OverlapWindow:
    """Find the canonical cells a query cell overlaps and the area of each overlap.

    Args:
        grid: Canonical grid.
        lat: Latitude of the query cell's southern edge.
        lon: Longitude of the query cell's western edge.
        lat_size: Query cell height in degrees.
        lon_size: Query cell width in degrees.

    Returns:
        OverlapWindow with inclusive index ranges and (n_lat, n_lon) areas in km^2.
    """
    if lat_size <= 0.0 or lon_size <= 0.0:
        raise ValueError(f"Query cell size must be positive, got ({lat_size}, {lon_size})")

    lat_tol = SLIVER_FRACTION * grid.lat_step
    lon_tol = SLIVER_FRACTION * grid.lon_step
    lat_lo = _closest_at_or_below(grid.lats, lat, lat_tol)
    lat_hi = _closest_at_or_below(grid.lats, lat + lat_size, lat_tol)
    lon_lo = _closest_at_or_below(grid.lons, lon, lon_tol)
    lon_hi = _closest_at_or_below(grid.lons, lon + lon_size, lon_tol)

    bottoms, heights = _overlap_extents(grid.lats, grid.lat_step, lat_lo, lat_hi, lat, lat_size)
    _, widths = _overlap_extents(grid.lons, grid.lon_step, lon_lo, lon_hi, lon, lon_size)

    areas = cell_area(bottoms[:, None], widths[None, :], heights[:, None])
    return OverlapWindow(lat_lo, lat_hi, lon_lo, lon_hi, areas)


def area_weighted_value(
    grid: CanonicalGrid,
    lat: float,
    lon: float,
    lat_size: float,
    lon_size: float,
    time_index: int,
) -> QueryResult:
    """Area-weighted value of a grid layer over a query cell.

    Cells equal to the grid's missing value (exact comparison) are left out
    of both the weighted sum and the total area. If no overlapped cell has
    data, the result is (missing_value, True).

    Args:
        grid: Canonical grid.
        lat: Latitude of the query cell's southern edge.
        lon: Longitude of the query cell's western edge.
        lat_size: Query cell height in degrees.
        lon_size: Query cell width in degrees.
        time_index: Zero-based time slice.

    Returns:
        QueryResult(value, is_missing).

    Raises:
        CoverageError: If the query origin or time index is outside the grid.
    """
    check_coverage(grid, lat, lon)
    if not 0 <= time_index < grid.num_times:
        raise CoverageError(
            f"Time index {time_index} outside layer time range [0, {grid.num_times})"
        )

    window = overlap_window(grid, lat, lon, lat_size, lon_size)
    values = grid.data[time_index, window.lat_slice, window.lon_slice]
    present = values != grid.missing_value

    total_area = window.areas[present].sum()
    if total_area == 0.0:
        return QueryResult(grid.missing_value, True)

    weights = window.areas[present] / total_area
    return QueryResult(float(np.sum(values[present] * weights)), False)
