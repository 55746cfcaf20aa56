"""ESRI ASCII grid reader.

Single-band text rasters with a header giving ncols, nrows, xllcorner,
yllcorner, cellsize and NODATA_value. Rows are stored north to south.
Read through rasterio (GDAL's AAIGrid driver), which turns the header into an
affine transform and nodata value.
"""

import logging
from pathlib import Path

import numpy as np
import rasterio

from envgrid.config import LoaderConfig
from envgrid.data.missing import resolve_missing_value
from envgrid.errors import LoadError, UnsupportedFormatError
from envgrid.types import RawGridPayload

log = logging.getLogger(__name__)

# Header field holding the sentinel
NODATA_FIELD = "NODATA_value"


def read_ascii_grid(path: Path, config: LoaderConfig | None = None) -> RawGridPayload:
    """Read an ESRI ASCII grid as a one-time-slice payload.

    Axis values are synthesized from the header as lower-left corners:
    lons ascend from xllcorner, lats descend from the top row so that row 0
    (the northernmost) gets the largest latitude.

    Args:
        path: Path to the .asc file.
        config: Loader configuration (missing-value policy).

    Returns:
        RawGridPayload with axis_order ("lat", "lon") and header cell sizes.
    """
    config = config or LoaderConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Environmental data file not found: {path}")

    with rasterio.open(path) as src:
        if src.count != 1:
            raise LoadError(f"Expected a single-band grid in {path}, found {src.count} bands")
        dtype = np.dtype(src.dtypes[0])
        if dtype.kind not in "fi":
            raise UnsupportedFormatError(f"Environmental data in {path} are in an unrecognized format: {dtype}")
        data = src.read(1).astype(np.float64)
        transform = src.transform
        nodata = src.nodata

    nrows, ncols = data.shape
    lon_step = float(transform.a)
    lat_step = abs(float(transform.e))
    xll = float(transform.c)
    yll = float(transform.f) - nrows * lat_step

    lons = xll + lon_step * np.arange(ncols, dtype=np.float64)
    lats = yll + lat_step * np.arange(nrows - 1, -1, -1, dtype=np.float64)

    missing_value = resolve_missing_value({NODATA_FIELD: nodata}, (NODATA_FIELD,), config, str(path))

    log.debug(f"{path.name}: {nrows}x{ncols} cells of {lat_step:g} deg from ({yll:g}, {xll:g})")
    return RawGridPayload(
        lats=lats,
        lons=lons,
        times=np.zeros(1, dtype=np.float64),
        data=data,
        axis_order=("lat", "lon"),
        missing_value=missing_value,
        cell_centred=False,
        lat_step=lat_step,
        lon_step=lon_step,
    )
