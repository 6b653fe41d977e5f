#!/usr/bin/env python3
"""
Matplotlib plotters for raster maps and accumulator snapshots.

  - plot_raster: 2D heatmap of one raster layer in logical order.
  - plot_accumulator: score and winning rotation of one metric after a rotation.
"""

import logging
import os
from typing import Any, Optional, Tuple

import numpy as np

from mapfit.core.raster import RasterMap
from mapfit.search.accumulator import AccumulatorSnapshot
from mapfit.search.metrics import METRICS

# Set up logger
logger = logging.getLogger(__name__)

DEFAULT_COLORMAP = "viridis"


def _pyplot():
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib.pyplot is required for plotting") from None
    return plt


def _extent(raster: RasterMap) -> Tuple[float, float, float, float]:
    # Columns run along -y, rows along -x
    x_max, y_max = raster.position + 0.5 * raster.length
    x_min, y_min = raster.position - 0.5 * raster.length
    return (y_max, y_min, x_min, x_max)


def plot_raster(
    raster: RasterMap,
    layer: str = "elevation",
    title: Optional[str] = None,
    colormap: str = DEFAULT_COLORMAP,
    figsize: Tuple[float, float] = (8, 6),
) -> Any:
    """
    Plot one layer of a raster map.

    Args:
        raster: Raster map
        layer: Layer to plot
        title: Plot title (defaults to the layer name)
        colormap: Colormap name
        figsize: Figure size (width, height) in inches

    Returns:
        Matplotlib Figure object.
    """
    plt = _pyplot()
    data = raster.logical_layer(layer)

    fig, ax = plt.subplots(figsize=figsize)
    image = ax.imshow(np.ma.masked_invalid(data), cmap=colormap, extent=_extent(raster))
    ax.set_xlabel("y")
    ax.set_ylabel("x")
    ax.set_title(title or layer)
    fig.colorbar(image, ax=ax, label=layer)
    return fig


def plot_accumulator(
    snapshot: AccumulatorSnapshot,
    metric: str = "ncc",
    colormap: str = DEFAULT_COLORMAP,
    figsize: Tuple[float, float] = (12, 5),
) -> Any:
    """
    Plot the accumulated score and winning rotation of one metric.

    Args:
        snapshot: Accumulator snapshot exported after a rotation
        metric: Metric name ("ncc", "ssd", "sad" or "mi")
        colormap: Colormap for the score panel
        figsize: Figure size (width, height) in inches

    Returns:
        Matplotlib Figure object.
    """
    plt = _pyplot()
    description = METRICS[metric]
    grid = snapshot.grid
    extent = _extent(grid)

    fig, (score_ax, rotation_ax) = plt.subplots(1, 2, figsize=figsize)

    score = score_ax.imshow(np.ma.masked_invalid(grid.logical_layer(description.layer)), cmap=colormap, extent=extent)
    score_ax.set_title(f"{description.label} (display scale)")
    fig.colorbar(score, ax=score_ax)

    rotation = rotation_ax.imshow(
        np.ma.masked_invalid(grid.logical_layer(description.rotation_layer)),
        cmap="twilight", vmin=0.0, vmax=360.0, extent=extent,
    )
    rotation_ax.set_title(f"{description.label} winning rotation (deg)")
    fig.colorbar(rotation, ax=rotation_ax)

    for ax in (score_ax, rotation_ax):
        ax.set_xlabel("y")
        ax.set_ylabel("x")

    fig.suptitle(f"Accumulator after rotation {snapshot.rotation:g} deg")
    fig.tight_layout()
    return fig


def save_figure(fig: Any, output_path: str, dpi: int = 150) -> str:
    """Save a figure to disk and close it."""
    plt = _pyplot()
    output_path = os.path.abspath(output_path)
    os.makedirs(os.path.dirname(output_path), exist_ok=True)
    fig.savefig(output_path, dpi=dpi)
    plt.close(fig)
    logger.info(f"Figure saved to {output_path}")
    return output_path
