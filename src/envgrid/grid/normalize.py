"""Axis normalization: raw source payloads to canonical grids.

A canonical grid has ascending latitude and longitude axes that hold the
lower-left corner of each cell, positive cell sizes, longitudes in
[-180, 180), and data laid out as (time, lat, lon). Every step here returns
new arrays; the input payload is never modified.
"""

import logging

import numpy as np

from envgrid.errors import LoadError
from envgrid.types import CanonicalGrid, RawGridPayload

log = logging.getLogger(__name__)

CANONICAL_ORDER = ("time", "lat", "lon")


def to_canonical_order(data: np.ndarray, axis_order: tuple[str, ...]) -> np.ndarray:
    """Transpose a source array into (time, lat, lon) order.

    Handles all six on-disk orderings of a 3-D variable and both orderings
    of a 2-D one. A 2-D input gains a leading time axis of length 1.

    Args:
        data: Source array with dimensions named by axis_order.
        axis_order: Names of data's dimensions, each of "lat", "lon", "time".

    Returns:
        (T, n_lat, n_lon) array (a view where possible).
    """
    axis_order = tuple(axis_order)
    if len(axis_order) != data.ndim:
        raise LoadError(
            f"Axis order {axis_order} does not match a {data.ndim}-D data array"
        )
    if len(set(axis_order)) != len(axis_order) or not {"lat", "lon"} <= set(axis_order) \
            or not set(axis_order) <= set(CANONICAL_ORDER):
        raise LoadError(f"Unrecognized axis order {axis_order}")

    if "time" not in axis_order:
        data = data[np.newaxis, ...]
        axis_order = ("time",) + axis_order

    return np.transpose(data, [axis_order.index(name) for name in CANONICAL_ORDER])


def _axis_step(values: np.ndarray, header_step: float | None, name: str) -> float:
    """Signed spacing of an axis, or the header-declared cell size."""
    if header_step is not None:
        return float(header_step)
    if values.shape[0] < 2:
        raise LoadError(f"Cannot derive {name} cell size from fewer than two {name} values")
    return float(values[1] - values[0])


def _orient_ascending(
    values: np.ndarray,
    data: np.ndarray,
    axis: int,
) -> tuple[np.ndarray, np.ndarray, bool]:
    """Reverse an axis and the matching data dimension if stored descending."""
    inverted = values.shape[0] > 1 and values[1] < values[0]
    if inverted:
        values = values[::-1]
        data = np.flip(data, axis=axis)
    return values, data, inverted


def wrap_longitudes(
    lons: np.ndarray,
    data: np.ndarray,
    lon_step: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Convert a 0..360 longitude axis to -180..180.

    Applied only when the grid's eastern edge lies beyond 180. Longitudes at
    or above 180 are shifted by -360 and the axis is re-sorted; the data's
    longitude columns are reordered with the same permutation.

    Args:
        lons: (n_lon,) ascending left-edge longitudes.
        data: (T, n_lat, n_lon) values.
        lon_step: Positive cell width.

    Returns:
        (lons, data) with lons ascending and lons[0] in [-180, 180).
    """
    if lons[0] + lons.shape[0] * lon_step <= 180.0:
        return lons, data

    shifted = np.where(lons >= 180.0, lons - 360.0, lons)
    order = np.argsort(shifted, kind="stable")
    log.info(f"Converting longitudes {lons[0]:g}..{lons[-1]:g} to the -180..180 convention")
    return shifted[order], data[..., order]


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, order="C")
    arr.setflags(write=False)
    return arr


def normalize(payload: RawGridPayload) -> CanonicalGrid:
    """Build a canonical grid from a raw source payload.

    Steps: transpose to (time, lat, lon); shift cell centres to lower-left
    corners; flip descending axes (with the data); wrap 0..360 longitudes;
    relabel time slices 1..T.

    Args:
        payload: Raw axes and values as read by a loader.

    Returns:
        Read-only CanonicalGrid.
    """
    data = to_canonical_order(np.asarray(payload.data, dtype=np.float64), payload.axis_order)
    lats = np.asarray(payload.lats, dtype=np.float64)
    lons = np.asarray(payload.lons, dtype=np.float64)

    if data.shape[1:] != (lats.shape[0], lons.shape[0]):
        raise LoadError(
            f"Data shape {data.shape[1:]} does not match axis lengths "
            f"({lats.shape[0]}, {lons.shape[0]})"
        )

    lat_step = _axis_step(lats, payload.lat_step, "latitude")
    lon_step = _axis_step(lons, payload.lon_step, "longitude")

    if payload.cell_centred:
        lats = lats - abs(lat_step) / 2
        lons = lons - abs(lon_step) / 2

    lats, data, lat_inverted = _orient_ascending(lats, data, axis=1)
    lons, data, lon_inverted = _orient_ascending(lons, data, axis=2)
    if lat_inverted or lon_inverted:
        log.debug(f"Flipped inverted axes (lat={lat_inverted}, lon={lon_inverted})")
    lat_step = abs(lat_step)
    lon_step = abs(lon_step)

    lons, data = wrap_longitudes(lons, data, lon_step)

    if not (lat_step > 0.0 and lon_step > 0.0):
        raise LoadError(f"Non-positive cell size (lat={lat_step}, lon={lon_step})")
    if not -180.0 <= lons[0] < 180.0:
        raise LoadError(f"Minimum longitude {lons[0]} outside [-180, 180)")

    times = np.arange(1, data.shape[0] + 1, dtype=np.int64)

    return CanonicalGrid(
        lats=_freeze(lats),
        lons=_freeze(lons),
        times=_freeze(times),
        data=_freeze(data),
        missing_value=float(payload.missing_value),
        lat_step=lat_step,
        lon_step=lon_step,
        units=payload.units,
    )
