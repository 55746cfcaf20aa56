"""Layers obtained from a remote climate data service instead of a file.

The service itself is pluggable: anything implementing ClimateFetcher can
supply a field for the model grid. This module only maps layer names onto
service parameters, builds the query axes and wraps the result as a payload.
"""

import logging
from typing import NamedTuple, Protocol

import numpy as np

from envgrid.config import GridConfig, TemporalResolution
from envgrid.errors import LoadError, UnsupportedFormatError
from envgrid.types import RawGridPayload

log = logging.getLogger(__name__)

# Layer name -> service parameter
FETCH_PARAMETERS = {
    "land_dtr": "land_diurnal_temperature_range",
    "temperature": "land_air_temperature",
    "temperature_ocean": "ocean_air_temperature",
    "precipitation": "precipitation",
    "frost": "land_frost_day_frequency",
}


class FetchedField(NamedTuple):
    """Values returned by a fetcher.

    data: (T, n_lat, n_lon) or (n_lat, n_lon) values on the requested axes
    missing_value: sentinel used in data
    units: units label
    """
    data: np.ndarray
    missing_value: float
    units: str = ""


class ClimateFetcher(Protocol):
    def fetch(
        self,
        parameter: str,
        resolution: TemporalResolution,
        lats: np.ndarray,
        lons: np.ndarray,
        cell_size: float,
    ) -> FetchedField:
        """Return a climatology of parameter on cells with lower-left corners lats x lons."""
        ...


def fetch_axes(grid: GridConfig) -> tuple[np.ndarray, np.ndarray]:
    """Lower-left corner axes of the model grid; latitudes rounded to 2 decimals."""
    lats = np.round(grid.bottom_latitude + grid.lat_cell_size * np.arange(grid.n_lats), 2)
    lons = grid.leftmost_longitude + grid.lon_cell_size * np.arange(grid.n_lons)
    return lats.astype(np.float64), lons.astype(np.float64)


def fetch_payload(
    fetcher: ClimateFetcher,
    variable: str,
    resolution: "str | TemporalResolution",
    grid: GridConfig,
) -> RawGridPayload:
    """Fetch a climatology layer for the model grid.

    Args:
        fetcher: Service client.
        variable: Layer name, one of FETCH_PARAMETERS (case-insensitive).
        resolution: "year" (one slice) or "month" (twelve slices).
        grid: Model grid the layer is fetched for.

    Returns:
        RawGridPayload on corner axes with axis_order ("time", "lat", "lon").
    """
    resolution = TemporalResolution.parse(resolution)
    parameter = FETCH_PARAMETERS.get(variable.lower())
    if parameter is None:
        raise UnsupportedFormatError(f"No remote environmental data available for '{variable}'")

    lats, lons = fetch_axes(grid)
    log.info(f"Fetching {variable} ({parameter}) at {resolution.value} resolution "
             f"for {lats.size}x{lons.size} cells")
    field = fetcher.fetch(parameter, resolution, lats, lons, grid.cell_size)

    data = np.asarray(field.data, dtype=np.float64)
    if data.ndim == 2:
        data = data[np.newaxis, ...]
    expected = (resolution.steps_per_period, lats.size, lons.size)
    if data.shape != expected:
        raise LoadError(f"Fetched {variable} has shape {data.shape}, expected {expected}")

    return RawGridPayload(
        lats=lats,
        lons=lons,
        times=np.arange(1, data.shape[0] + 1, dtype=np.float64),
        data=data,
        axis_order=("time", "lat", "lon"),
        missing_value=float(field.missing_value),
        cell_centred=False,
        lat_step=grid.lat_cell_size,
        lon_step=grid.lon_cell_size,
        units=field.units,
    )
