"""Source dispatch: read any supported layer file into a raw payload."""

import logging
from pathlib import Path

from envgrid.config import LoaderConfig, SourceKind, TemporalResolution
from envgrid.data.ascii_grid import read_ascii_grid
from envgrid.data.netcdf import load_netcdf
from envgrid.errors import UnsupportedFormatError
from envgrid.types import RawGridPayload

log = logging.getLogger(__name__)


def load(
    file_path: Path,
    variable_name: str,
    source_kind: "str | SourceKind",
    temporal_resolution: "str | TemporalResolution",
    config: LoaderConfig | None = None,
    units: str | None = None,
) -> RawGridPayload:
    """Read a layer file into a RawGridPayload.

    Args:
        file_path: Path to the source file.
        variable_name: NetCDF variable to read (ignored for ASCII grids).
        source_kind: "esriasciigrid" or "nc" (case-insensitive).
        temporal_resolution: "year" or "month" (case-insensitive).
        config: Loader configuration.
        units: Units label; overrides the file's units attribute when given.

    Returns:
        RawGridPayload in on-disk axis order and orientation.
    """
    kind = SourceKind.parse(source_kind)
    resolution = TemporalResolution.parse(temporal_resolution)
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Environmental data file not found: {path}")

    log.info(f"Reading {variable_name} from {path.name} ({kind.value}, {resolution.value})")
    if kind is SourceKind.ESRI_ASCII_GRID:
        if resolution is TemporalResolution.MONTH:
            raise UnsupportedFormatError(
                "Variables at monthly temporal resolution must be stored as three-dimensional NetCDFs"
            )
        payload = read_ascii_grid(path, config)
    else:
        payload = load_netcdf(path, variable_name, resolution, config)

    if units is not None:
        payload = payload._replace(units=units)
    return payload
