"""
Vertical offset between a live map and a reference map at a chosen pose.
"""

import logging
from typing import Sequence, Union

import numpy as np

from mapfit.core.raster import RasterMap, index_in_range, logical_to_buffer
from mapfit.exceptions import ZOffsetError
from mapfit.search.matching import sample_live_map, target_indices

# Set up logging
logger = logging.getLogger(__name__)


def estimate_z_offset(
    live: RasterMap,
    reference: RasterMap,
    position: Union[Sequence[float], np.ndarray],
    rotation: float,
    correlation_stride: int,
) -> float:
    """
    Estimate the elevation bias of the reference relative to the live map.

    The live map is sampled and placed on the reference exactly as for
    matching, anchored at the reference cell containing the chosen position;
    no overlap requirement is applied.

    Args:
        live: Live raster map
        reference: Reference raster map
        position: World (x, y) of the chosen pose
        rotation: Chosen rotation in degrees
        correlation_stride: Sampling stride in live cells

    Returns:
        reference_mean - live_mean over all matched samples.

    Raises:
        ZOffsetError: If no live sample lands on a defined reference cell.
    """
    samples = sample_live_map(live, correlation_stride)
    if samples.points == 0:
        raise ZOffsetError("Live map has no defined elevation samples")

    anchor, _ = reference.index_at(np.asarray(position, dtype=np.float64).reshape(1, 2))
    indices = target_indices(anchor[0], samples.index_displacements(rotation))
    inside = index_in_range(indices, reference.size)
    if not np.any(inside):
        raise ZOffsetError(f"No live sample falls inside the reference map at {tuple(position)}")

    buffer = logical_to_buffer(indices[inside], reference.size, reference.start_index)
    reference_values = reference["elevation"][buffer[:, 0], buffer[:, 1]]
    defined = np.isfinite(reference_values)
    matches = int(np.count_nonzero(defined))
    if matches == 0:
        raise ZOffsetError(f"No defined reference elevation under the live map at {tuple(position)}")

    live_mean = float(np.mean(samples.elevation[inside][defined]))
    reference_mean = float(np.mean(reference_values[defined]))
    logger.debug(f"Z offset from {matches} samples: reference {reference_mean:.4f}, live {live_mean:.4f}")
    return reference_mean - live_mean
