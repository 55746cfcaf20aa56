"""Model grid cells that receive environmental values."""

from dataclasses import dataclass, field

import numpy as np

from envgrid.config import GridConfig


@dataclass
class GridCell:
    """One cell of the model grid.

    latitude, longitude: lower-left corner in degrees
    environment: layer name -> (T,) values for this cell
    """
    latitude: float
    longitude: float
    environment: dict[str, np.ndarray] = field(default_factory=dict)


def make_cells(grid: GridConfig) -> list[GridCell]:
    return [GridCell(lat, lon) for lat, lon in grid.cell_origins()]
