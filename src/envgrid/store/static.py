"""Static environmental layers: a whole canonical grid held in memory."""

import logging
from pathlib import Path

from envgrid.config import GridConfig, LoaderConfig, SourceKind, TemporalResolution
from envgrid.data.fetch import ClimateFetcher, fetch_payload
from envgrid.data.loader import load
from envgrid.errors import CoverageError
from envgrid.grid.normalize import normalize
from envgrid.grid.resample import area_weighted_value
from envgrid.types import CanonicalGrid, QueryResult

log = logging.getLogger(__name__)


class StaticEnviroLayer:
    """Environmental layer whose full time range is loaded once at construction.

    Args:
        grid: Canonical grid to serve queries from.
        source: Description of where the grid came from, used in messages.
    """

    def __init__(self, grid: CanonicalGrid, source: str = ""):
        self._grid = grid
        self.source = source

    @classmethod
    def from_file(
        cls,
        file_path: Path,
        variable_name: str,
        source_kind: "str | SourceKind",
        temporal_resolution: "str | TemporalResolution",
        units: str | None = None,
        config: LoaderConfig | None = None,
    ) -> "StaticEnviroLayer":
        """Load every time slice of a layer file."""
        resolution = TemporalResolution.parse(temporal_resolution)
        payload = load(file_path, variable_name, source_kind, resolution, config, units)
        grid = normalize(payload)

        if resolution is TemporalResolution.MONTH and grid.num_times != resolution.steps_per_period:
            log.warning(
                f"Monthly layer {variable_name} in {Path(file_path).name} has "
                f"{grid.num_times} time slices, expected {resolution.steps_per_period}"
            )
        log.info(
            f"Loaded {variable_name}: {grid.num_times} x {grid.num_lats} x {grid.num_lons} "
            f"cells of {grid.lat_step:g} x {grid.lon_step:g} deg"
        )
        return cls(grid, source=str(file_path))

    @classmethod
    def from_fetch(
        cls,
        fetcher: ClimateFetcher,
        variable_name: str,
        temporal_resolution: "str | TemporalResolution",
        grid_config: GridConfig | None = None,
    ) -> "StaticEnviroLayer":
        """Build a layer from a remote climatology for the model grid."""
        payload = fetch_payload(fetcher, variable_name, temporal_resolution, grid_config or GridConfig())
        grid = normalize(payload)
        log.info(f"Fetched {variable_name}: {grid.num_times} x {grid.num_lats} x {grid.num_lons}")
        return cls(grid, source=f"fetch:{variable_name}")

    @property
    def grid(self) -> CanonicalGrid:
        return self._grid

    @property
    def num_times(self) -> int:
        return self._grid.num_times

    @property
    def missing_value(self) -> float:
        return self._grid.missing_value

    @property
    def units(self) -> str:
        return self._grid.units

    def get_value(
        self,
        lat: float,
        lon: float,
        time_index: int,
        lat_cell_size: float,
        lon_cell_size: float,
    ) -> QueryResult:
        """Area-weighted value over the cell with lower-left corner (lat, lon)."""
        try:
            return area_weighted_value(self._grid, lat, lon, lat_cell_size, lon_cell_size, time_index)
        except CoverageError as e:
            raise CoverageError(f"{e} ({self.source})") from e
