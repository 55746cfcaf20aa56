"""Tests for the layer catalog and environment stack assembly."""

import numpy as np
import pytest

from conftest import FakeFetcher, write_ascii_grid, write_netcdf
from envgrid.cells import GridCell, make_cells
from envgrid.config import EnviroConfig, GridConfig, TemporalResolution
from envgrid.errors import LoadError, UnsupportedFormatError
from envgrid.stack import (
    assign_static_environment,
    assign_temporal_environment,
    build_enviro_stack,
    read_layer_catalog,
)

HEADER = "Source,Folder,Filename,Extension,DatasetName,FileType,LayerName,Static,Resolution,Units\n"


@pytest.fixture
def data_dir(tmp_path, monthly_cube, cube_coords):
    """Data directory with a monthly NetCDF, an ASCII grid and a temporal series."""
    write_netcdf(tmp_path / "tas.nc", "tas", monthly_cube, ("time", "lat", "lon"), cube_coords,
                 attrs={"missing_value": -9999.0})
    rows = np.array([[1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 8.0], [9.0, -9999.0, 11.0, 12.0]])
    write_ascii_grid(tmp_path / "soil.asc", rows, xll=20.0, yll=10.0, cellsize=1.0)
    series = np.concatenate([monthly_cube, monthly_cube + 10000])
    coords = dict(cube_coords, time=np.arange(24.0))
    write_netcdf(tmp_path / "pr.nc", "precip", series, ("time", "lat", "lon"), coords,
                 attrs={"missing_value": -9999.0})
    (tmp_path / "EnvironmentalDataLayers.csv").write_text(
        HEADER
        + "local,input,tas,.nc,tas,nc,Temperature,Y,month,K\n"
        + "local,input,soil,.asc,ignored,esriasciigrid,SoilType,Y,year,\n"
        + "local,input,pr,.nc,precip,nc,Precipitation,N,month,mm\n"
    )
    return tmp_path


class TestCatalog:
    """CSV parsing rules."""

    def test_rows(self, data_dir):
        specs = read_layer_catalog(data_dir / "EnvironmentalDataLayers.csv")
        assert [s.layer_name for s in specs] == ["Temperature", "SoilType", "Precipitation"]
        assert specs[0].static and not specs[2].static
        assert specs[0].resolution is TemporalResolution.MONTH
        # ASCII grids are named by their file
        assert specs[1].dataset_name == "soil"

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("Source,Folder\nlocal,input\n")
        with pytest.raises(LoadError, match="missing columns"):
            read_layer_catalog(path)

    def test_unknown_source(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(HEADER + "ftp,input,a,.nc,a,nc,A,Y,year,\n")
        with pytest.raises(UnsupportedFormatError, match="Unknown layer source"):
            read_layer_catalog(path)


class TestBuildStack:
    """Loading every catalog layer."""

    def test_build(self, data_dir):
        stack = build_enviro_stack(EnviroConfig(data_dir=data_dir))
        try:
            assert set(stack.static) == {"Temperature", "SoilType"}
            assert set(stack.temporal) == {"Precipitation"}
            assert stack.static["Temperature"].units == "K"
        finally:
            stack.close()
        assert not stack.temporal["Precipitation"]._dataset.isopen()

    def test_missing_file(self, data_dir):
        (data_dir / "soil.asc").unlink()
        with pytest.raises(FileNotFoundError, match="SoilType"):
            build_enviro_stack(EnviroConfig(data_dir=data_dir))

    def test_fetched_layer(self, tmp_path):
        catalog = tmp_path / "layers.csv"
        catalog.write_text(HEADER + "fetchclimate,,,,,,Temperature,Y,month,degC\n")
        grid = GridConfig(bottom_latitude=0.0, top_latitude=2.0, leftmost_longitude=0.0,
                          rightmost_longitude=2.0)
        config = EnviroConfig(data_dir=tmp_path, layers_file=catalog, grid=grid)
        stack = build_enviro_stack(config, fetcher=FakeFetcher())
        assert stack.static["Temperature"].num_times == 12
        with pytest.raises(LoadError, match="no fetcher"):
            build_enviro_stack(config)


class TestAssignEnvironment:
    """Writing layer values into model cells."""

    def test_static(self, data_dir):
        stack = build_enviro_stack(EnviroConfig(data_dir=data_dir))
        cell = GridCell(10.0, 21.0)
        try:
            assign_static_environment(cell, stack, 1.0, 1.0)
        finally:
            stack.close()
        np.testing.assert_array_equal(cell.environment["Temperature"], [100.0 * t + 1 for t in range(12)])
        # Southern row, second column of the ASCII grid is missing
        np.testing.assert_array_equal(cell.environment["SoilType"], [-9999.0])

    def test_temporal(self, data_dir):
        stack = build_enviro_stack(EnviroConfig(data_dir=data_dir))
        cells = make_cells(GridConfig(bottom_latitude=10.0, top_latitude=12.0,
                                      leftmost_longitude=20.0, rightmost_longitude=22.0))
        try:
            assign_temporal_environment(cells, stack, 12, 1.0, 1.0)
        finally:
            stack.close()
        assert len(cells) == 4
        assert (cells[3].latitude, cells[3].longitude) == (11.0, 21.0)
        np.testing.assert_array_equal(cells[3].environment["Precipitation"],
                                      [10000.0 + 100 * t + 11 for t in range(12)])
