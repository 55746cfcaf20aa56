"""Temporal environmental layers read one period at a time.

A long time series (e.g. monthly values over many simulated years) is kept
on disk. The layer holds an open NetCDF handle and materializes a window of
one period (12 slices monthly, 1 yearly) on request; each load replaces the
previous window as a whole.
"""

import logging
from pathlib import Path

import numpy as np

from envgrid.cells import GridCell
from envgrid.config import LoaderConfig, SourceKind, TemporalResolution
from envgrid.data.netcdf import open_dataset, read_header, read_payload
from envgrid.errors import CoverageError, LoadError, UnsupportedFormatError, WindowNotLoadedError
from envgrid.grid.normalize import normalize
from envgrid.grid.resample import area_weighted_value
from envgrid.types import CanonicalGrid, QueryResult

log = logging.getLogger(__name__)


class TemporalEnviroLayer:
    """Windowed view of a time-series layer stored in a NetCDF file.

    Args:
        file_path: Path to the NetCDF file.
        variable_name: Variable to read.
        source_kind: Must be "nc".
        temporal_resolution: "month" (12-slice windows) or "year" (1-slice windows).
        units: Units label; defaults to the variable's units attribute.
        config: Loader configuration.
    """

    def __init__(
        self,
        file_path: Path,
        variable_name: str,
        source_kind: "str | SourceKind" = SourceKind.NETCDF,
        temporal_resolution: "str | TemporalResolution" = TemporalResolution.MONTH,
        units: str | None = None,
        config: LoaderConfig | None = None,
    ):
        if SourceKind.parse(source_kind) is not SourceKind.NETCDF:
            raise UnsupportedFormatError("Temporal layers must be stored as three-dimensional NetCDFs")
        self.resolution = TemporalResolution.parse(temporal_resolution)
        self.variable_name = variable_name
        self.path = Path(file_path)

        self._dataset = open_dataset(self.path)
        try:
            header = read_header(self._dataset, variable_name, self.resolution, config)
            if header.time_position is None:
                raise LoadError(f"Temporal layer {variable_name} in {self.path} has no time dimension")
        except Exception:
            self._dataset.close()
            raise

        self._header = header
        self._units = header.units if units is None else units
        self._window: CanonicalGrid | None = None
        self._window_start: int | None = None
        log.info(
            f"Opened temporal layer {variable_name} ({self.path.name}): "
            f"{header.num_times} time slices, {self.resolution.value} resolution"
        )

    @property
    def steps_per_window(self) -> int:
        return self.resolution.steps_per_period

    @property
    def num_times(self) -> int:
        """Time slices available in the file."""
        return self._header.num_times

    @property
    def missing_value(self) -> float:
        return self._header.missing_value

    @property
    def units(self) -> str:
        return self._units

    @property
    def window(self) -> CanonicalGrid:
        if self._window is None:
            raise WindowNotLoadedError(
                f"No window loaded for temporal layer {self.variable_name}; call load_window first"
            )
        return self._window

    @property
    def window_start(self) -> int | None:
        return self._window_start

    def load_window(self, timestep_elapsed: int) -> CanonicalGrid:
        """Read and normalize the slices [timestep_elapsed, timestep_elapsed + steps_per_window).

        The new window replaces the current one only after it has been fully
        read and normalized; a failed load leaves the previous window in place.
        """
        payload = read_payload(
            self._dataset, self._header,
            time_start=timestep_elapsed, time_count=self.steps_per_window,
        )
        grid = normalize(payload._replace(units=self._units))
        self._window, self._window_start = grid, timestep_elapsed
        log.info(
            f"Loaded {self.variable_name} window at timestep {timestep_elapsed}: "
            f"{grid.num_times} x {grid.num_lats} x {grid.num_lons}"
        )
        return grid

    def get_value(
        self,
        lat: float,
        lon: float,
        time_index: int,
        lat_cell_size: float,
        lon_cell_size: float,
    ) -> QueryResult:
        """Area-weighted value from the current window; time_index is window-relative."""
        try:
            return area_weighted_value(self.window, lat, lon, lat_cell_size, lon_cell_size, time_index)
        except CoverageError as e:
            raise CoverageError(f"{e} ({self.path})") from e

    def fill_cells_for_window(
        self,
        cells: list[GridCell],
        timestep_elapsed: int,
        layer_name: str,
        lat_cell_size: float,
        lon_cell_size: float,
        cell_missing_value: float | None = None,
    ) -> None:
        """Load the window at timestep_elapsed and write it into every cell.

        Each cell's environment[layer_name] becomes a (steps_per_window,) array
        whose entry k holds the value for slice timestep_elapsed + k. Missing
        results are stored as cell_missing_value (default: the layer's sentinel).

        Args:
            cells: Model grid cells; each is identified by its lower-left corner.
            timestep_elapsed: First time slice of the window.
            layer_name: Name of the environment slot to write.
            lat_cell_size: Model cell height in degrees.
            lon_cell_size: Model cell width in degrees.
            cell_missing_value: Value written where a result is missing.
        """
        self.load_window(timestep_elapsed)
        fill = self.missing_value if cell_missing_value is None else cell_missing_value

        for cell in cells:
            values = np.empty(self.steps_per_window, dtype=np.float64)
            for k in range(self.steps_per_window):
                result = self.get_value(cell.latitude, cell.longitude, k, lat_cell_size, lon_cell_size)
                values[k] = fill if result.is_missing else result.value
            cell.environment[layer_name] = values

    def close(self) -> None:
        """Close the underlying file handle."""
        if self._dataset.isopen():
            self._dataset.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
