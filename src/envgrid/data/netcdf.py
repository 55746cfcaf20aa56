"""NetCDF environmental layer reader.

Finds which of a variable's dimensions are latitude, longitude and time by
matching their names against synonym lists, reads the coordinate vectors and
the missing-value sentinel, and extracts raw values (all time slices or a
contiguous window of them) promoted to float64. Axis orientation and cell
referencing are left untouched; see envgrid.grid.normalize.
"""

import logging
from pathlib import Path
from typing import NamedTuple

import numpy as np
from netCDF4 import Dataset

from envgrid.config import LoaderConfig, TemporalResolution
from envgrid.data.missing import resolve_missing_value
from envgrid.errors import LoadError, UnsupportedFormatError
from envgrid.types import RawGridPayload

log = logging.getLogger(__name__)

# On-disk encodings accepted for the layer variable, in either byte order
SUPPORTED_DTYPES = (
    np.dtype(np.float32),
    np.dtype(np.float64),
    np.dtype(np.int32),
    np.dtype(np.int16),
)

AXIS_LABELS = {"lat": "latitude", "lon": "longitude", "time": "time"}


class NetCDFHeader(NamedTuple):
    """Everything about a layer variable except its values.

    variable: variable name in the file
    axis_order: axis names of the data after singleton dimensions are dropped
    index_template: per file dimension, slice(None) to keep or 0 to drop
    time_position: index of the time dimension among the file dimensions, or None
    lats, lons: raw coordinate vectors
    times: raw time coordinate (or 0..n-1 if not numeric / absent)
    missing_value: sentinel value
    units: variable's units attribute, or ""
    """
    variable: str
    axis_order: tuple[str, ...]
    index_template: tuple
    time_position: int | None
    lats: np.ndarray
    lons: np.ndarray
    times: np.ndarray
    missing_value: float
    units: str

    @property
    def num_times(self) -> int:
        return self.times.shape[0]


def open_dataset(path: Path) -> Dataset:
    """Open a NetCDF file read-only with automatic masking and scaling disabled.

    Values come back exactly as stored so the missing-value sentinel can be
    compared bit-for-bit. The caller owns the handle and must close it.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Environmental data file not found: {path}")
    ds = Dataset(path, "r")
    ds.set_auto_maskandscale(False)
    return ds


def match_dimension(
    dimensions: tuple[str, ...],
    synonyms: tuple[str, ...],
    axis: str,
) -> str | None:
    """Name of the single dimension matching an axis's synonym list.

    Synonyms are tried in order and compared case-sensitively. Returns None
    if nothing matches; more than one matching dimension is a LoadError.
    """
    hits = [name for name in synonyms if name in dimensions]
    if len(hits) > 1:
        raise LoadError(
            f"Ambiguous {AXIS_LABELS[axis]} dimension: {hits} all match in {dimensions}"
        )
    return hits[0] if hits else None


def _read_coordinate(ds: Dataset, name: str, axis: str, length: int) -> np.ndarray:
    if name not in ds.variables:
        raise LoadError(f"Cannot find any variables that look like {AXIS_LABELS[axis]} dimensions")
    var = ds.variables[name]
    if var.dtype.kind not in "fiu":
        raise UnsupportedFormatError(
            f"Unrecognized data format for {AXIS_LABELS[axis]} dimension: {var.dtype}"
        )
    values = np.asarray(var[:], dtype=np.float64).ravel()
    if values.shape[0] != length:
        raise LoadError(
            f"{AXIS_LABELS[axis].capitalize()} coordinate '{name}' has {values.shape[0]} "
            f"values but the dimension has length {length}"
        )
    return values


def _read_times(ds: Dataset, name: str, length: int) -> np.ndarray:
    """Time coordinate as float64; string or absent coordinates become indices."""
    var = ds.variables.get(name)
    if var is None or var.dtype.kind not in "fiu":
        return np.arange(length, dtype=np.float64)
    return np.asarray(var[:], dtype=np.float64).ravel()


def read_header(
    ds: Dataset,
    variable: str,
    resolution: TemporalResolution,
    config: LoaderConfig | None = None,
) -> NetCDFHeader:
    """Discover axes, coordinates and metadata for a layer variable.

    Args:
        ds: Open dataset (see open_dataset).
        variable: Name of the layer variable.
        resolution: Temporal resolution; monthly layers must have a time dimension.
        config: Loader configuration (synonyms, missing-value policy).

    Returns:
        NetCDFHeader for use with read_payload.
    """
    config = config or LoaderConfig()
    source = f"{ds.filepath()}:{variable}"

    if variable not in ds.variables:
        raise LoadError(f"Requested variable '{variable}' does not exist in {ds.filepath()}")
    var = ds.variables[variable]
    if np.dtype(var.dtype).newbyteorder("=") not in SUPPORTED_DTYPES:
        raise UnsupportedFormatError(
            f"Environmental data in {source} are in an unrecognized format: {var.dtype}"
        )

    dims = tuple(var.dimensions)
    found = {}
    for axis in ("lat", "lon", "time"):
        found[axis] = match_dimension(dims, config.synonyms.for_axis(axis), axis)
    for axis in ("lat", "lon"):
        if found[axis] is None:
            raise LoadError(
                f"Cannot find plausible {AXIS_LABELS[axis]} dimension among {dims} in {source}"
            )
    if found["time"] is None and resolution is TemporalResolution.MONTH:
        raise LoadError(
            f"Cannot find plausible monthly temporal dimension among {dims} in {source}"
        )

    by_name = {name: axis for axis, name in found.items() if name is not None}
    axis_order = []
    index_template = []
    time_position = None
    for position, (name, size) in enumerate(zip(dims, var.shape)):
        if name in by_name:
            axis_order.append(by_name[name])
            index_template.append(slice(None))
            if by_name[name] == "time":
                time_position = position
        elif size == 1:
            index_template.append(0)
        else:
            raise LoadError(f"Unexpected dimension '{name}' of length {size} in {source}")

    sizes = dict(zip(dims, var.shape))
    lats = _read_coordinate(ds, found["lat"], "lat", sizes[found["lat"]])
    lons = _read_coordinate(ds, found["lon"], "lon", sizes[found["lon"]])
    if found["time"] is not None:
        times = _read_times(ds, found["time"], sizes[found["time"]])
    else:
        times = np.zeros(1, dtype=np.float64)

    attrs = {name: var.getncattr(name) for name in var.ncattrs()}
    missing_value = resolve_missing_value(attrs, config.missing_value_attrs, config, source)
    units = str(attrs.get("units", ""))

    log.debug(f"{source}: axes {tuple(axis_order)}, {lats.size}x{lons.size}x{times.size}")
    return NetCDFHeader(
        variable=variable,
        axis_order=tuple(axis_order),
        index_template=tuple(index_template),
        time_position=time_position,
        lats=lats,
        lons=lons,
        times=times,
        missing_value=missing_value,
        units=units,
    )


def read_payload(
    ds: Dataset,
    header: NetCDFHeader,
    time_start: int = 0,
    time_count: int | None = None,
) -> RawGridPayload:
    """Read a layer's values, optionally restricted to a window of time slices.

    Only the requested window is read from disk.

    Args:
        ds: Open dataset the header was read from.
        header: Result of read_header.
        time_start: First time index to read.
        time_count: Number of time slices (default: through the end of the file).

    Returns:
        RawGridPayload in on-disk axis order.
    """
    if time_count is None:
        time_count = header.num_times - time_start
    if time_start < 0 or time_count < 1 or time_start + time_count > header.num_times:
        raise LoadError(
            f"Requested time slices [{time_start}, {time_start + time_count}) exceed the "
            f"{header.num_times} time slices of '{header.variable}' in {ds.filepath()}"
        )

    index = list(header.index_template)
    if header.time_position is not None:
        index[header.time_position] = slice(time_start, time_start + time_count)

    raw = ds.variables[header.variable][tuple(index)]
    data = np.asarray(raw).astype(np.float64)

    return RawGridPayload(
        lats=header.lats,
        lons=header.lons,
        times=header.times[time_start:time_start + time_count],
        data=data,
        axis_order=header.axis_order,
        missing_value=header.missing_value,
        cell_centred=True,
        units=header.units,
    )


def load_netcdf(
    path: Path,
    variable: str,
    resolution: TemporalResolution,
    config: LoaderConfig | None = None,
) -> RawGridPayload:
    """Read every time slice of a NetCDF layer variable."""
    with open_dataset(path) as ds:
        header = read_header(ds, variable, resolution, config)
        return read_payload(ds, header)
