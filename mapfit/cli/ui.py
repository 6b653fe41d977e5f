#!/usr/bin/env python3
"""
UI components for the mapfit CLI.

This module provides the shared rich console and helpers that print search
results, raster summaries and status messages consistently.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from mapfit.core.raster import RasterMap
from mapfit.search.engine import SearchResult

logger = logging.getLogger(__name__)

mapfit_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "path": "blue",
    "value": "green",
    "key": "cyan",
    "header": "bold magenta",
})

console = Console(theme=mapfit_theme)


def print_success(message: str) -> None:
    console.print(f"[success]✓[/success] {message}")


def print_warning(message: str) -> None:
    console.print(f"[warning]![/warning] {message}")


def print_error(message: str) -> None:
    console.print(f"[error]✗ {message}[/error]")


def print_result_table(result: SearchResult, errors: Optional[Dict[str, Optional[float]]] = None) -> None:
    """
    Print the best pose of every metric as a table.

    Args:
        result: Search result
        errors: Optional position error per metric (from FitStatistics.record)
    """
    table = Table(title="Best poses")
    table.add_column("Metric", style="key", no_wrap=True)
    table.add_column("x", style="value", justify="right")
    table.add_column("y", style="value", justify="right")
    table.add_column("Rotation", style="value", justify="right")
    table.add_column("Score", style="value", justify="right")
    if errors is not None:
        table.add_column("Error", style="value", justify="right")

    for name, pose in result.poses.items():
        if pose is None:
            row = [name.upper(), "-", "-", "-", "none found"]
        else:
            row = [name.upper(), f"{pose.x:.3f}", f"{pose.y:.3f}", f"{pose.rotation:g}", f"{pose.score:.6g}"]
        if errors is not None:
            error = errors.get(name)
            row.append("-" if error is None else f"{error:.3f}")
        table.add_row(*row)

    console.print(table)

    if result.z_offset is None:
        print_warning("Z offset could not be estimated")
    else:
        console.print(f"Z offset ([key]{result.z_offset_metric.upper()}[/key] pose): [value]{result.z_offset:.4f}[/value]")
    console.print(
        f"{result.successful_matches} of {result.candidates_evaluated} candidates matched "
        f"over {len(result.rotations)} rotation(s) in {result.duration:.2f} s"
    )


def display_raster_info(raster: RasterMap, title: str = "Raster map") -> None:
    """
    Display geometry and per-layer statistics of a raster map.

    Args:
        raster: Raster map to describe
        title: Table title
    """
    table = Table(title=title)
    table.add_column("Property", style="key", no_wrap=True)
    table.add_column("Value", style="value")

    properties: Dict[str, Any] = {
        "size": f"{raster.size[0]} x {raster.size[1]}",
        "resolution": f"{raster.resolution:.6g}",
        "length": ", ".join(f"{v:.4f}" for v in raster.length),
        "position": ", ".join(f"{v:.4f}" for v in raster.position),
        "start index": ", ".join(str(int(v)) for v in raster.start_index),
        "frame": raster.frame_id,
    }
    for key, value in properties.items():
        table.add_row(key, value)

    for name in raster.layers:
        data = raster[name]
        defined = np.isfinite(data)
        if np.any(defined):
            summary = (
                f"{np.count_nonzero(defined)} defined, "
                f"range {np.min(data[defined]):.4f} to {np.max(data[defined]):.4f}"
            )
        else:
            summary = "no defined cells"
        table.add_row(f"layer '{name}'", summary)

    console.print(table)
