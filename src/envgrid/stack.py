"""Environment stack assembly from a layer catalog.

The catalog is a CSV with one row per environmental layer:

  Source,Folder,Filename,Extension,DatasetName,FileType,LayerName,Static,Resolution,Units
  local,input,LandSeaMask,.nc,land_sea_mask,nc,LandSeaMask,Y,year,none
  fetchclimate,,,,,,Temperature,Y,month,degC

Static layers are loaded in full; the rest are opened as temporal layers and
read one window at a time.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from envgrid.cells import GridCell
from envgrid.config import (
    DEFAULT_CELL_MISSING_VALUE, EnviroConfig, SourceKind, TemporalResolution,
)
from envgrid.data.fetch import ClimateFetcher
from envgrid.errors import LoadError, UnsupportedFormatError
from envgrid.store.static import StaticEnviroLayer
from envgrid.store.temporal import TemporalEnviroLayer

log = logging.getLogger(__name__)

CATALOG_COLUMNS = (
    "Source", "Folder", "Filename", "Extension", "DatasetName",
    "FileType", "LayerName", "Static", "Resolution", "Units",
)
LOCAL_SOURCE = "local"
FETCH_SOURCE = "fetchclimate"


@dataclass(frozen=True)
class LayerSpec:
    """One catalog row."""
    source: str
    folder: str
    filename: str
    extension: str
    dataset_name: str
    file_type: str
    layer_name: str
    static: bool
    resolution: TemporalResolution
    units: str

    @property
    def is_fetched(self) -> bool:
        return self.source == FETCH_SOURCE


def read_layer_catalog(path: Path) -> list[LayerSpec]:
    """Parse the environmental data layers CSV.

    Values are whitespace-stripped; Source is case-insensitive. For ESRI
    ASCII grids the dataset name is the file name.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Layer catalog not found: {path}")

    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        header = [name.strip() for name in (reader.fieldnames or [])]
        missing = [c for c in CATALOG_COLUMNS if c not in header]
        if missing:
            raise LoadError(f"Layer catalog {path} is missing columns: {missing}")
        rows = [{k.strip(): (v or "").strip() for k, v in row.items() if k is not None} for row in reader]

    specs = []
    for row in rows:
        if not any(row.values()):
            continue
        source = row["Source"].lower()
        if source not in (LOCAL_SOURCE, FETCH_SOURCE):
            raise UnsupportedFormatError(f"Unknown layer source '{row['Source']}' in {path}")
        file_type = row["FileType"].lower()
        dataset_name = row["DatasetName"]
        if file_type == SourceKind.ESRI_ASCII_GRID.value:
            dataset_name = row["Filename"]
        specs.append(LayerSpec(
            source=source,
            folder=row["Folder"],
            filename=row["Filename"],
            extension=row["Extension"],
            dataset_name=dataset_name,
            file_type=file_type,
            layer_name=row["LayerName"],
            static=row["Static"].upper() == "Y",
            resolution=TemporalResolution.parse(row["Resolution"]),
            units=row["Units"],
        ))

    log.info(f"Read {len(specs)} layers from {path.name}")
    return specs


def validate_catalog(specs: list[LayerSpec], config: EnviroConfig) -> None:
    """Check that every local layer's file exists before anything is loaded."""
    for spec in specs:
        if spec.is_fetched:
            continue
        path = config.resolve_layer_path(spec.folder, spec.filename, spec.extension)
        if not path.exists():
            raise FileNotFoundError(f"Environmental layer {spec.layer_name} not found: {path}")

    names = [spec.layer_name for spec in specs]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise LoadError(f"Duplicate layer names in catalog: {duplicates}")


@dataclass
class EnviroStack:
    """Loaded layers by name."""
    static: dict[str, StaticEnviroLayer] = field(default_factory=dict)
    temporal: dict[str, TemporalEnviroLayer] = field(default_factory=dict)

    @property
    def layer_names(self) -> list[str]:
        return list(self.static) + list(self.temporal)

    def close(self) -> None:
        for layer in self.temporal.values():
            layer.close()


def build_enviro_stack(
    config: EnviroConfig,
    fetcher: ClimateFetcher | None = None,
) -> EnviroStack:
    """Load every layer in the catalog at config.layers_path.

    Args:
        config: Data directory, catalog location, loader and model grid settings.
        fetcher: Climate service client, required if the catalog has fetched layers.

    Returns:
        EnviroStack with static layers loaded and temporal layers opened.
    """
    specs = read_layer_catalog(config.layers_path)
    validate_catalog(specs, config)

    stack = EnviroStack()
    try:
        for spec in specs:
            if spec.is_fetched:
                if not spec.static:
                    raise UnsupportedFormatError(
                        f"Fetched layer {spec.layer_name} must be static"
                    )
                if fetcher is None:
                    raise LoadError(f"Layer {spec.layer_name} is fetched but no fetcher was given")
                stack.static[spec.layer_name] = StaticEnviroLayer.from_fetch(
                    fetcher, spec.layer_name, spec.resolution, config.grid,
                )
                continue

            path = config.resolve_layer_path(spec.folder, spec.filename, spec.extension)
            if spec.static:
                stack.static[spec.layer_name] = StaticEnviroLayer.from_file(
                    path, spec.dataset_name, spec.file_type, spec.resolution,
                    units=spec.units or None, config=config.loader,
                )
            else:
                stack.temporal[spec.layer_name] = TemporalEnviroLayer(
                    path, spec.dataset_name, spec.file_type, spec.resolution,
                    units=spec.units or None, config=config.loader,
                )
    except Exception:
        stack.close()
        raise

    log.info(f"Built environment stack: {len(stack.static)} static, {len(stack.temporal)} temporal layers")
    return stack


def assign_static_environment(
    cell: GridCell,
    stack: EnviroStack,
    lat_cell_size: float,
    lon_cell_size: float,
    missing_value: float = DEFAULT_CELL_MISSING_VALUE,
) -> None:
    """Write every static layer's values into the cell.

    Each slot holds one area-weighted value per time slice of the layer;
    missing results become missing_value.
    """
    for name, layer in stack.static.items():
        values = np.empty(layer.num_times, dtype=np.float64)
        for t in range(layer.num_times):
            result = layer.get_value(cell.latitude, cell.longitude, t, lat_cell_size, lon_cell_size)
            values[t] = missing_value if result.is_missing else result.value
        cell.environment[name] = values


def assign_temporal_environment(
    cells: list[GridCell],
    stack: EnviroStack,
    timestep_elapsed: int,
    lat_cell_size: float,
    lon_cell_size: float,
    missing_value: float = DEFAULT_CELL_MISSING_VALUE,
) -> None:
    """Load the window at timestep_elapsed for every temporal layer and fill the cells."""
    for name, layer in stack.temporal.items():
        layer.fill_cells_for_window(
            cells, timestep_elapsed, name, lat_cell_size, lon_cell_size,
            cell_missing_value=missing_value,
        )
