#!/usr/bin/env python3
"""
Search, info and demo commands for the mapfit CLI.
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from mapfit import __version__
from mapfit.cli.config import load_user_config
from mapfit.cli.ui import console, display_raster_info, print_error, print_result_table, print_success
from mapfit.core.config import SearchConfig, load_config
from mapfit.exceptions import MapFitException
from mapfit.exporters.npz import load_raster, save_raster
from mapfit.exporters.results import export_result
from mapfit.exporters.sinks import CompositeSnapshotSink, NpzSnapshotSink, PlotSnapshotSink
from mapfit.search.engine import SearchResult, search
from mapfit.search.evaluation import FitStatistics
from mapfit.utils.synthetic import crop_live_map, make_reference_map

logger = logging.getLogger(__name__)


def _report(
    result: SearchResult,
    config: SearchConfig,
    true_position=None,
    true_rotation: float = 0.0,
    output: Optional[Path] = None,
) -> None:
    errors = None
    extra = {"config": config.as_dict()}
    if true_position is not None:
        statistics = FitStatistics()
        errors = statistics.record(result, true_position, true_rotation, config.angle_increment)
        extra["evaluation"] = {
            "true_position": list(true_position),
            "true_rotation": true_rotation,
            "errors": errors,
            "summary": statistics.summary(),
        }

    print_result_table(result, errors)

    if output is not None:
        path = export_result(result, output, extra=extra)
        print_success(f"Result written to {path}")


def search_command(
    live: Path = typer.Argument(..., help="Live map (.npz)", exists=True, dir_okay=False),
    reference: Path = typer.Argument(..., help="Reference map (.npz)", exists=True, dir_okay=False),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON search configuration"),
    angle_increment: Optional[float] = typer.Option(None, help="Rotation step in degrees (360 disables rotation)"),
    position_stride: Optional[int] = typer.Option(None, help="Candidate position stride in reference cells"),
    correlation_stride: Optional[int] = typer.Option(None, help="Live sampling stride in cells"),
    required_overlap: Optional[float] = typer.Option(None, help="Required fraction of matched live samples"),
    weighted: Optional[bool] = typer.Option(None, "--weighted/--unweighted", help="Inverse-variance weighting"),
    threads: Optional[int] = typer.Option(None, help="Threads used to sweep rotations"),
    snapshots: Optional[Path] = typer.Option(None, help="Directory for per-rotation accumulator snapshots"),
    plots: Optional[Path] = typer.Option(None, help="Directory for per-rotation accumulator plots"),
    plot_metric: str = typer.Option("ncc", help="Metric shown in accumulator plots"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result as JSON"),
    true_x: Optional[float] = typer.Option(None, help="True x position for error reporting"),
    true_y: Optional[float] = typer.Option(None, help="True y position for error reporting"),
    true_rotation: float = typer.Option(0.0, help="True rotation in degrees for error reporting"),
):
    """Search the pose of a live map in a reference map."""
    try:
        config = load_config(config_file) if config_file else load_user_config()
        config = config.updated(
            angle_increment=angle_increment,
            position_search_stride=position_stride,
            correlation_stride=correlation_stride,
            required_overlap=required_overlap,
            weighted=weighted,
            num_threads=threads,
        )
        live_map = load_raster(live)
        reference_map = load_raster(reference)

        sink = CompositeSnapshotSink(
            NpzSnapshotSink(snapshots) if snapshots else None,
            PlotSnapshotSink(plots, metric=plot_metric) if plots else None,
        )
        with console.status("Searching..."):
            result = search(live_map, reference_map, config, snapshot_sink=sink if sink.sinks else None)
    except MapFitException as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    true_position = None
    if true_x is not None and true_y is not None:
        true_position = (true_x, true_y)
    _report(result, config, true_position, true_rotation, output)


def info_command(
    raster: Path = typer.Argument(..., help="Raster map (.npz)", exists=True, dir_okay=False),
):
    """Display geometry and layer statistics of a raster map."""
    try:
        display_raster_info(load_raster(raster), title=raster.name)
    except MapFitException as e:
        print_error(f"Failed to read raster map: {e}")
        raise typer.Exit(code=1)


def demo_command(
    rotation: float = typer.Option(90.0, help="Rotation of the synthetic live map in degrees"),
    angle_increment: float = typer.Option(90.0, help="Rotation step of the search"),
    row: int = typer.Option(40, help="Reference row of the live map center"),
    col: int = typer.Option(35, help="Reference column of the live map center"),
    z_shift: float = typer.Option(0.5, help="Elevation added to the live map"),
    seed: int = typer.Option(0, help="Terrain random seed"),
    save_dir: Optional[Path] = typer.Option(None, help="Save the synthetic maps as .npz"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the result as JSON"),
):
    """Run a search on synthetic terrain with a known pose."""
    reference_map = make_reference_map((100, 100), resolution=0.1, seed=seed)
    live_map = crop_live_map(reference_map, (row, col), size=(30, 30), rotation=rotation, z_shift=z_shift)
    config = SearchConfig(angle_increment=angle_increment, correlation_stride=2)

    if save_dir is not None:
        save_raster(reference_map, save_dir / "reference.npz")
        save_raster(live_map, save_dir / "live.npz")
        print_success(f"Synthetic maps saved to {save_dir}")

    with console.status("Searching..."):
        result = search(live_map, reference_map, config)

    console.print(f"True pose: x={live_map.position[0]:.3f}, y={live_map.position[1]:.3f}, rotation={rotation:g}")
    _report(result, config, tuple(live_map.position), rotation, output)


def version_command():
    """Display the mapfit version."""
    console.print(f"mapfit {__version__}")
