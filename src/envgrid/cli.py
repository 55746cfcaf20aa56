"""CLI entry point for envgrid."""

import logging

import click
from pathlib import Path


def _configure_logging():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _loader_config(missing_policy):
    from envgrid.config import LoaderConfig

    return LoaderConfig(missing_value_policy=missing_policy)


@click.group()
def main():
    """envgrid: environmental grid resampling for ecosystem models."""
    pass


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--variable", default="", help="Variable name (NetCDF only).")
@click.option("--kind", type=click.Choice(["nc", "esriasciigrid"], case_sensitive=False),
              default="nc", help="Source file format.")
@click.option("--resolution", type=click.Choice(["year", "month"], case_sensitive=False),
              default="year", help="Temporal resolution.")
@click.option("--missing-policy", type=click.Choice(["strict", "default"]), default="strict",
              help="What to do when no missing-value attribute is found.")
def inspect(path, variable, kind, resolution, missing_policy):
    """Load a layer and print its canonical grid summary."""
    from envgrid.store.static import StaticEnviroLayer

    _configure_logging()
    layer = StaticEnviroLayer.from_file(
        Path(path), variable, kind, resolution, config=_loader_config(missing_policy),
    )
    grid = layer.grid
    print(f"Layer:     {variable or Path(path).stem}")
    print(f"Shape:     {grid.num_times} x {grid.num_lats} x {grid.num_lons} (time, lat, lon)")
    print(f"Latitude:  [{grid.lat_min:g}, {grid.lat_max:g}) step {grid.lat_step:g}")
    print(f"Longitude: [{grid.lon_min:g}, {grid.lon_max:g}) step {grid.lon_step:g}")
    print(f"Missing:   {grid.missing_value:g}")
    print(f"Units:     {grid.units}")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--variable", default="", help="Variable name (NetCDF only).")
@click.option("--kind", type=click.Choice(["nc", "esriasciigrid"], case_sensitive=False),
              default="nc", help="Source file format.")
@click.option("--resolution", type=click.Choice(["year", "month"], case_sensitive=False),
              default="year", help="Temporal resolution.")
@click.option("--lat", type=float, required=True, help="Query cell southern edge.")
@click.option("--lon", type=float, required=True, help="Query cell western edge.")
@click.option("--cell-size", type=float, default=1.0, help="Query cell size in degrees.")
@click.option("--time-index", type=int, default=0, help="Zero-based time slice.")
@click.option("--missing-policy", type=click.Choice(["strict", "default"]), default="strict",
              help="What to do when no missing-value attribute is found.")
def query(path, variable, kind, resolution, lat, lon, cell_size, time_index, missing_policy):
    """Print the area-weighted value of a layer over one cell."""
    from envgrid.store.static import StaticEnviroLayer

    _configure_logging()
    layer = StaticEnviroLayer.from_file(
        Path(path), variable, kind, resolution, config=_loader_config(missing_policy),
    )
    result = layer.get_value(lat, lon, time_index, cell_size, cell_size)
    if result.is_missing:
        print(f"missing ({result.value:g})")
    else:
        print(f"{result.value:.6g} {layer.units}".rstrip())


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--variable", required=True, help="Variable name.")
@click.option("--kind", type=click.Choice(["nc", "esriasciigrid"], case_sensitive=False),
              default="nc", help="Source file format; temporal layers must be NetCDF.")
@click.option("--resolution", type=click.Choice(["year", "month"], case_sensitive=False),
              default="month", help="Temporal resolution.")
@click.option("--timestep", type=int, default=0, help="First time slice of the window.")
@click.option("--lat", type=float, required=True, help="Query cell southern edge.")
@click.option("--lon", type=float, required=True, help="Query cell western edge.")
@click.option("--cell-size", type=float, default=1.0, help="Query cell size in degrees.")
@click.option("--missing-policy", type=click.Choice(["strict", "default"]), default="strict",
              help="What to do when no missing-value attribute is found.")
def window(path, variable, kind, resolution, timestep, lat, lon, cell_size, missing_policy):
    """Load one window of a temporal layer and print its values for one cell."""
    from envgrid.cells import GridCell
    from envgrid.store.temporal import TemporalEnviroLayer

    _configure_logging()
    cell = GridCell(lat, lon)
    with TemporalEnviroLayer(
        Path(path), variable, kind, resolution, config=_loader_config(missing_policy),
    ) as layer:
        layer.fill_cells_for_window([cell], timestep, variable, cell_size, cell_size)

    for k, value in enumerate(cell.environment[variable]):
        print(f"  {timestep + k:5d}: {value:.6g}")


@main.command()
@click.option("--data-dir", type=click.Path(exists=True), default="input/Data",
              help="Directory holding the layer files.")
@click.option("--layers-file", type=click.Path(), default=None,
              help="Layer catalog CSV (default: data_dir/EnvironmentalDataLayers.csv).")
@click.option("--missing-policy", type=click.Choice(["strict", "default"]), default="strict",
              help="What to do when no missing-value attribute is found.")
def stack(data_dir, layers_file, missing_policy):
    """Build the environment stack described by a layer catalog."""
    from envgrid.config import EnviroConfig
    from envgrid.stack import build_enviro_stack

    _configure_logging()
    config = EnviroConfig(
        data_dir=Path(data_dir),
        layers_file=Path(layers_file) if layers_file else None,
        loader=_loader_config(missing_policy),
    )
    enviro = build_enviro_stack(config)
    try:
        for name, layer in enviro.static.items():
            grid = layer.grid
            print(f"  static   {name}: {grid.num_times} x {grid.num_lats} x {grid.num_lons}")
        for name, layer in enviro.temporal.items():
            print(f"  temporal {name}: {layer.num_times} time slices ({layer.resolution.value})")
    finally:
        enviro.close()
    print(f"Built {len(enviro.layer_names)} layers")


if __name__ == "__main__":
    main()
