"""
Synthetic terrain and live-map generation.

Used by the demo command and the tests: a smooth random reference terrain is
generated, and live maps are cut out of it at a known pose with the same
index mapping the search uses, so that the true pose is recoverable exactly.
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy import ndimage

from mapfit.core.raster import RasterMap, index_in_range
from mapfit.search.matching import rotation_terms

logger = logging.getLogger(__name__)


def make_terrain(
    shape: Tuple[int, int] = (80, 80),
    seed: Optional[int] = 0,
    smoothing: float = 3.0,
    relief: float = 1.0,
) -> np.ndarray:
    """
    Smooth random terrain.

    Args:
        shape: (rows, cols) of the terrain
        seed: Random seed for reproducibility
        smoothing: Gaussian filter sigma in cells
        relief: Standard deviation of the resulting elevations

    Returns:
        2-D float array with zero mean.
    """
    rng = np.random.default_rng(seed)
    noise = rng.standard_normal(shape)
    terrain = ndimage.gaussian_filter(noise, sigma=smoothing, mode="reflect")
    std = float(np.std(terrain))
    if std > 0:
        terrain = (terrain - np.mean(terrain)) / std * relief
    return terrain


def _to_buffer(logical: np.ndarray, start_index: Sequence[int]) -> np.ndarray:
    return np.roll(logical, shift=(int(start_index[0]), int(start_index[1])), axis=(0, 1))


def make_reference_map(
    shape: Tuple[int, int] = (80, 80),
    resolution: float = 0.1,
    position: Sequence[float] = (0.0, 0.0),
    seed: Optional[int] = 0,
    smoothing: float = 3.0,
    relief: float = 1.0,
    start_index: Sequence[int] = (0, 0),
) -> RasterMap:
    """
    Reference map over synthetic terrain.

    Args:
        shape: (rows, cols) of the map
        resolution: Cell edge length
        position: World position of the map center
        seed, smoothing, relief: Terrain parameters (see make_terrain)
        start_index: Circular buffer start index of the stored layers

    Returns:
        RasterMap with an "elevation" layer.
    """
    terrain = make_terrain(shape, seed=seed, smoothing=smoothing, relief=relief)
    return RasterMap(
        {"elevation": _to_buffer(terrain, start_index)},
        resolution,
        position=position,
        start_index=start_index,
    )


def crop_live_map(
    reference: RasterMap,
    center_index: Tuple[int, int],
    size: Tuple[int, int] = (20, 20),
    rotation: float = 0.0,
    z_shift: float = 0.0,
    variance: float = 0.01,
    start_index: Sequence[int] = (0, 0),
) -> RasterMap:
    """
    Cut a live map out of a reference map at a known pose.

    Live cell (i, j) takes the reference value that the search reads when
    the live map is anchored at center_index with the given rotation, so a
    search recovers (center_index, rotation) exactly.

    Args:
        reference: Reference map to crop from
        center_index: Logical reference index the live center maps to
        size: (rows, cols) of the live map
        rotation: Rotation in degrees
        z_shift: Constant added to the live elevations
        variance: Value of the live "variance" layer
        start_index: Circular buffer start index of the live layers

    Returns:
        RasterMap with "elevation" and "variance" layers, centered at the
        world position of center_index. Cells mapping outside the reference
        are NaN.
    """
    rows, cols = int(size[0]), int(size[1])
    grid_rows, grid_cols = np.meshgrid(np.arange(rows), np.arange(cols), indexing="ij")
    di = (rows - 1) / 2.0 - grid_rows
    dj = (cols - 1) / 2.0 - grid_cols

    cos_t, sin_t = rotation_terms(rotation)
    target = np.stack(
        [
            np.floor(center_index[0] - (cos_t * di - sin_t * dj)),
            np.floor(center_index[1] - (sin_t * di + cos_t * dj)),
        ],
        axis=-1,
    ).astype(np.int64)

    inside = index_in_range(target, reference.size)
    reference_logical = reference.logical_layer("elevation")
    elevation = np.full((rows, cols), np.nan)
    elevation[inside] = reference_logical[target[inside][:, 0], target[inside][:, 1]] + z_shift

    if not np.all(inside):
        logger.debug(f"{int(np.count_nonzero(~inside))} live cells fall outside the reference map")

    return RasterMap(
        {
            "elevation": _to_buffer(elevation, start_index),
            "variance": np.full((rows, cols), float(variance)),
        },
        reference.resolution,
        position=reference.get_position(center_index),
        start_index=start_index,
    )
