"""Tests for the windowed TemporalEnviroLayer."""

import numpy as np
import pytest

from conftest import write_netcdf
from envgrid.cells import GridCell
from envgrid.errors import LoadError, UnsupportedFormatError, WindowNotLoadedError
from envgrid.store.temporal import TemporalEnviroLayer


@pytest.fixture
def series_path(tmp_path):
    """Three years of monthly values on a descending 2 x 2 grid.

    Value = 1000 * t + 10 * lat_row + lon_col, where lat_row counts from the
    south; the file stores rows north to south in lon-time-lat order.
    """
    n_t = 36
    t, i, j = np.meshgrid(np.arange(n_t), np.arange(2), np.arange(2), indexing="ij")
    cube = (1000 * t + 10 * i + j).astype(np.float32)
    cube[5, 0, 0] = -9999.0
    stored = np.transpose(cube[:, ::-1, :], (2, 0, 1))  # (lon, time, lat), lat descending
    coords = {"lat": np.array([1.5, 0.5]), "lon": np.array([0.5, 1.5]), "time": np.arange(n_t, dtype=float)}
    return write_netcdf(tmp_path / "series.nc", "tas", stored, ("lon", "time", "lat"), coords,
                        attrs={"missing_value": -9999.0, "units": "K"})


class TestWindowing:
    """Loading and replacing windows."""

    def test_not_loaded(self, series_path):
        with TemporalEnviroLayer(series_path, "tas") as layer:
            with pytest.raises(WindowNotLoadedError):
                layer.get_value(0.0, 0.0, 0, 1.0, 1.0)

    def test_window_values(self, series_path):
        with TemporalEnviroLayer(series_path, "tas", "nc", "month") as layer:
            assert layer.num_times == 36
            grid = layer.load_window(12)
            assert grid.num_times == 12
            np.testing.assert_array_equal(grid.times, np.arange(1, 13))
            assert layer.get_value(1.0, 1.0, 0, 1.0, 1.0).value == 12000 + 11
            assert layer.get_value(0.0, 1.0, 11, 1.0, 1.0).value == 23000 + 1

    def test_replacement_is_whole(self, series_path):
        """After a reload every slice comes from the new window."""
        with TemporalEnviroLayer(series_path, "tas") as layer:
            layer.load_window(0)
            first = [layer.get_value(1.0, 0.0, k, 1.0, 1.0).value for k in range(12)]
            layer.load_window(24)
            second = [layer.get_value(1.0, 0.0, k, 1.0, 1.0).value for k in range(12)]
            assert layer.window_start == 24
        assert first == [1000.0 * k + 10 for k in range(12)]
        assert second == [1000.0 * (24 + k) + 10 for k in range(12)]

    def test_window_past_end(self, series_path):
        """A failed load keeps the previous window."""
        with TemporalEnviroLayer(series_path, "tas") as layer:
            layer.load_window(0)
            with pytest.raises(LoadError, match="exceed"):
                layer.load_window(30)
            assert layer.window_start == 0
            assert layer.get_value(1.0, 0.0, 0, 1.0, 1.0).value == 10.0

    def test_yearly_windows(self, series_path):
        """Yearly resolution reads one slice per window."""
        with TemporalEnviroLayer(series_path, "tas", "nc", "year") as layer:
            assert layer.steps_per_window == 1
            layer.load_window(7)
            assert layer.get_value(0.0, 0.0, 0, 1.0, 1.0).value == 7000.0

    def test_requires_netcdf(self, series_path):
        with pytest.raises(UnsupportedFormatError, match="NetCDF"):
            TemporalEnviroLayer(series_path, "tas", "esriasciigrid", "month")

    def test_requires_time_dimension(self, tmp_path):
        path = write_netcdf(tmp_path / "flat.nc", "v", np.ones((2, 2), dtype=np.float32), ("lat", "lon"),
                            {"lat": np.arange(2.0), "lon": np.arange(2.0)}, attrs={"missing_value": -1.0})
        with pytest.raises(LoadError, match="no time dimension"):
            TemporalEnviroLayer(path, "v", "nc", "year")

    def test_close(self, series_path):
        layer = TemporalEnviroLayer(series_path, "tas")
        layer.close()
        layer.close()
        assert not layer._dataset.isopen()


class TestFillCells:
    """Batch fill of cell environment slots."""

    def test_fill_indexes_from_window_start(self, series_path):
        cells = [GridCell(0.0, 0.0), GridCell(1.0, 1.0)]
        with TemporalEnviroLayer(series_path, "tas") as layer:
            layer.fill_cells_for_window(cells, 12, "Temperature", 1.0, 1.0)
        np.testing.assert_array_equal(cells[0].environment["Temperature"], [1000.0 * (12 + k) for k in range(12)])
        np.testing.assert_array_equal(cells[1].environment["Temperature"],
                                      [1000.0 * (12 + k) + 11 for k in range(12)])

    def test_missing_filled(self, series_path):
        cell = GridCell(0.0, 0.0)
        with TemporalEnviroLayer(series_path, "tas") as layer:
            layer.fill_cells_for_window([cell], 0, "Temperature", 1.0, 1.0, cell_missing_value=-1.0)
            values = cell.environment["Temperature"]
            assert values[5] == -1.0
            layer.fill_cells_for_window([cell], 0, "Temperature", 1.0, 1.0)
        assert cell.environment["Temperature"][5] == -9999.0
        assert values.shape == (12,)
