"""Tests for configuration parsing helpers."""

from pathlib import Path

import pytest

from envgrid.config import AxisSynonyms, EnviroConfig, GridConfig, SourceKind, TemporalResolution
from envgrid.errors import UnsupportedFormatError


class TestEnums:

    def test_resolution_steps(self):
        assert TemporalResolution.parse("Month").steps_per_period == 12
        assert TemporalResolution.parse(TemporalResolution.YEAR).steps_per_period == 1

    def test_source_kind(self):
        assert SourceKind.parse("NC") is SourceKind.NETCDF
        with pytest.raises(UnsupportedFormatError):
            SourceKind.parse("tif")


class TestGridConfig:

    def test_default_grid(self):
        """Default model grid is 1 degree from 65S to 65N."""
        grid = GridConfig()
        assert (grid.n_lats, grid.n_lons) == (130, 360)

    def test_cell_origins(self):
        grid = GridConfig(bottom_latitude=0.0, top_latitude=1.0, leftmost_longitude=0.0,
                          rightmost_longitude=1.0, cell_size=0.5)
        assert grid.cell_origins() == [(0.0, 0.0), (0.0, 0.5), (0.5, 0.0), (0.5, 0.5)]


class TestEnviroConfig:

    def test_input_folder_maps_to_data_dir(self, tmp_path):
        config = EnviroConfig(data_dir=tmp_path)
        assert config.resolve_layer_path("input", "tas", ".nc") == tmp_path / "tas.nc"
        assert config.resolve_layer_path("/elsewhere", "tas", ".nc") == Path("/elsewhere/tas.nc")
        assert config.layers_path == tmp_path / "EnvironmentalDataLayers.csv"

    def test_synonym_lookup(self):
        assert AxisSynonyms().for_axis("time")[0] == "month"
