"""Configuration dataclasses for envgrid."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from envgrid.errors import UnsupportedFormatError


class SourceKind(str, Enum):
    """On-disk format of an environmental layer."""
    ESRI_ASCII_GRID = "esriasciigrid"  # single-band grid with text header
    NETCDF = "nc"  # self-describing multi-dimensional array file

    @classmethod
    def parse(cls, value: "str | SourceKind") -> "SourceKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedFormatError(f"Data type not supported: {value!r}") from None


class TemporalResolution(str, Enum):
    """Temporal resolution of an environmental layer."""
    YEAR = "year"
    MONTH = "month"

    @classmethod
    def parse(cls, value: "str | TemporalResolution") -> "TemporalResolution":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedFormatError(f"Temporal resolution not supported: {value!r}") from None

    @property
    def steps_per_period(self) -> int:
        return 12 if self is TemporalResolution.MONTH else 1


@dataclass(frozen=True)
class AxisSynonyms:
    """Ordered, case-sensitive dimension names tried for each axis."""
    lat: tuple[str, ...] = (
        "lat", "Lat", "latitude", "Latitude", "lats", "Lats",
        "latitudes", "Latitudes", "y", "Y",
    )
    lon: tuple[str, ...] = (
        "lon", "Lon", "longitude", "Longitude", "lons", "Lons", "long", "Long",
        "longs", "Longs", "longitudes", "Longitudes", "x", "X",
    )
    time: tuple[str, ...] = ("month", "Month", "months", "Months", "Time", "time")

    def for_axis(self, axis: str) -> tuple[str, ...]:
        return getattr(self, axis)


@dataclass(frozen=True)
class LoaderConfig:
    """Source-reading configuration."""
    synonyms: AxisSynonyms = field(default_factory=AxisSynonyms)
    missing_value_attrs: tuple[str, ...] = ("missing_value", "MissingValue", "_FillValue")
    # "strict": no missing-value attribute aborts the load
    # "default": warn and fall back to default_missing_value
    missing_value_policy: str = "strict"
    default_missing_value: float = -9999.0


@dataclass(frozen=True)
class GridConfig:
    """The external model grid that queries are issued for."""
    bottom_latitude: float = -65.0
    top_latitude: float = 65.0
    leftmost_longitude: float = -180.0
    rightmost_longitude: float = 180.0
    cell_size: float = 1.0

    @property
    def lat_cell_size(self) -> float:
        return self.cell_size

    @property
    def lon_cell_size(self) -> float:
        return self.cell_size

    @property
    def n_lats(self) -> int:
        return int(round((self.top_latitude - self.bottom_latitude) / self.cell_size))

    @property
    def n_lons(self) -> int:
        return int(round((self.rightmost_longitude - self.leftmost_longitude) / self.cell_size))

    def cell_origins(self) -> list[tuple[float, float]]:
        """Lower-left (lat, lon) of every model grid cell, row-major from the south-west."""
        return [
            (self.bottom_latitude + i * self.cell_size,
             self.leftmost_longitude + j * self.cell_size)
            for i in range(self.n_lats)
            for j in range(self.n_lons)
        ]


@dataclass(frozen=True)
class EnviroConfig:
    """Top-level configuration for building an environment stack."""
    data_dir: Path = Path("input/Data")
    layers_file: Path | None = None
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    grid: GridConfig = field(default_factory=GridConfig)

    @property
    def layers_path(self) -> Path:
        if self.layers_file is not None:
            return self.layers_file
        return self.data_dir / "EnvironmentalDataLayers.csv"

    def resolve_layer_path(self, folder: str, filename: str, extension: str) -> Path:
        """Map a catalog row's folder/filename/extension onto a file path.

        The folder keyword "input" refers to data_dir; anything else is used as is.
        """
        base = self.data_dir if folder.lower() == "input" else Path(folder)
        return base / f"{filename}{extension}"


# Sentinel written into a model cell's environment when a layer has no data there
DEFAULT_CELL_MISSING_VALUE = -9999.0
