"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure src is on the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def write_netcdf(
    path: Path,
    variable: str,
    data: np.ndarray,
    dims: tuple[str, ...],
    coords: dict[str, np.ndarray],
    dtype: str = "f4",
    attrs: dict | None = None,
    endian: str = "native",
) -> Path:
    """Write a synthetic single-variable NetCDF file.

    coords maps dimension names to coordinate values; a dimension without an
    entry gets no coordinate variable.
    """
    from netCDF4 import Dataset

    attrs = dict(attrs or {})
    fill_value = attrs.pop("_FillValue", None)
    with Dataset(path, "w") as ds:
        for name, size in zip(dims, data.shape):
            ds.createDimension(name, size)
            if name in coords:
                var = ds.createVariable(name, "f8", (name,))
                var[:] = coords[name]
        var = ds.createVariable(variable, dtype, dims, fill_value=fill_value, endian=endian)
        var.set_auto_maskandscale(False)
        native = np.dtype(var.dtype).newbyteorder("=")
        for key, value in attrs.items():
            if not isinstance(value, str):
                value = np.array(value, dtype=native)
            var.setncattr(key, value)
        var[:] = data.astype(native)
    return path


def write_ascii_grid(
    path: Path,
    data: np.ndarray,
    xll: float,
    yll: float,
    cellsize: float,
    nodata: float | None = -9999,
) -> Path:
    """Write an ESRI ASCII grid; data rows run north to south."""
    nrows, ncols = data.shape
    lines = [
        f"ncols {ncols}",
        f"nrows {nrows}",
        f"xllcorner {xll}",
        f"yllcorner {yll}",
        f"cellsize {cellsize}",
    ]
    if nodata is not None:
        lines.append(f"NODATA_value {nodata}")
    for row in data:
        lines.append(" ".join(f"{v:g}" for v in row))
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def monthly_cube():
    """(12, 3, 4) monthly values; value encodes (t, i, j) as 100*t + 10*i + j."""
    t, i, j = np.meshgrid(np.arange(12), np.arange(3), np.arange(4), indexing="ij")
    return (100 * t + 10 * i + j).astype(np.float32)


@pytest.fixture
def cube_coords():
    """Cell-centre axes matching monthly_cube: 1-degree cells from (10, 20)."""
    return {
        "lat": np.array([10.5, 11.5, 12.5]),
        "lon": np.array([20.5, 21.5, 22.5, 23.5]),
        "time": np.arange(12, dtype=np.float64),
    }


class FakeFetcher:
    """Climate service stand-in: value is the cell's latitude plus the time index."""

    def __init__(self, missing_value=-999.0, n_times=None):
        self.missing_value = missing_value
        self.n_times = n_times
        self.calls = []

    def fetch(self, parameter, resolution, lats, lons, cell_size):
        from envgrid.data.fetch import FetchedField

        self.calls.append((parameter, resolution, lats, lons, cell_size))
        n = self.n_times or resolution.steps_per_period
        data = lats[None, :, None] + np.arange(n)[:, None, None] + np.zeros((1, 1, lons.size))
        return FetchedField(data, self.missing_value, "degC")
