"""Value types passed between the loader, normalizer, resampler and stores."""

from typing import NamedTuple

import numpy as np

# Array type alias (NumPy arrays)
Array = np.ndarray


class RawGridPayload(NamedTuple):
    """Axis vectors and values exactly as read from a source file.

    lats: (n_lat,) latitude coordinates, any order, centres or corners
    lons: (n_lon,) longitude coordinates, any order, centres or corners
    times: (n_time,) raw time coordinate values (or indices)
    data: float64 array whose dimensions follow axis_order
    axis_order: names of data's dimensions, e.g. ("time", "lat", "lon")
    missing_value: sentinel marking cells with no data
    cell_centred: True if lats/lons denote cell centres, False for lower-left corners
    lat_step, lon_step: cell sizes from a file header, or None to derive from the axes
    units: informational units string
    """
    lats: Array
    lons: Array
    times: Array
    data: Array
    axis_order: tuple[str, ...]
    missing_value: float
    cell_centred: bool = True
    lat_step: float | None = None
    lon_step: float | None = None
    units: str = ""


class CanonicalGrid(NamedTuple):
    """Normalized, read-only environmental layer.

    lats: (n_lat,) ascending lower-edge latitudes
    lons: (n_lon,) ascending left-edge longitudes in [-180, 180)
    times: (n_time,) integer time-slice labels (1..12 monthly, 1 yearly)
    data: (n_time, n_lat, n_lon) float64 values in ascending lat/lon order
    missing_value: sentinel compared by exact equality
    lat_step, lon_step: positive cell sizes in degrees
    units: informational units string
    """
    lats: Array
    lons: Array
    times: Array
    data: Array
    missing_value: float
    lat_step: float
    lon_step: float
    units: str = ""

    @property
    def num_lats(self) -> int:
        return self.lats.shape[0]

    @property
    def num_lons(self) -> int:
        return self.lons.shape[0]

    @property
    def num_times(self) -> int:
        return self.data.shape[0]

    @property
    def lat_min(self) -> float:
        return float(self.lats[0])

    @property
    def lon_min(self) -> float:
        return float(self.lons[0])

    @property
    def lat_max(self) -> float:
        """Upper edge of the northernmost cell row."""
        return self.lat_min + self.num_lats * self.lat_step

    @property
    def lon_max(self) -> float:
        """Right edge of the easternmost cell column."""
        return self.lon_min + self.num_lons * self.lon_step


class OverlapWindow(NamedTuple):
    """Canonical cells intersected by a query cell.

    lat_lo, lat_hi: inclusive latitude index range
    lon_lo, lon_hi: inclusive longitude index range
    areas: (lat_hi - lat_lo + 1, lon_hi - lon_lo + 1) overlap areas in km^2
    """
    lat_lo: int
    lat_hi: int
    lon_lo: int
    lon_hi: int
    areas: Array

    @property
    def lat_slice(self) -> slice:
        return slice(self.lat_lo, self.lat_hi + 1)

    @property
    def lon_slice(self) -> slice:
        return slice(self.lon_lo, self.lon_hi + 1)


class QueryResult(NamedTuple):
    """Area-weighted value for one query cell and time slice.

    value: weighted mean, or the layer's missing value when is_missing
    is_missing: True if every overlapped cell held the missing value
    """
    value: float
    is_missing: bool
