"""
Sample matching between a live map and a reference map.

For one candidate pose (rotation and reference anchor index) the live map is
walked on a regular stride, every defined live cell is rotated about the live
map center and translated onto the reference anchor, and the pairs of defined
(live, reference) elevations are collected.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from mapfit.core.raster import RasterMap, index_in_range, logical_to_buffer
from mapfit.exceptions import MapFitDataError

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A pose hypothesis: rotation in degrees and logical reference index."""
    rotation: float
    index: Tuple[int, int]


def rotation_terms(rotation: float) -> Tuple[float, float]:
    """
    Cosine and sine of a rotation given in degrees.

    Both are snapped to 12 decimals so that right angles give exact 0/±1
    and index flooring stays stable.
    """
    radians = np.deg2rad(rotation)
    cos_t = round(float(np.cos(radians)), 12) + 0.0
    sin_t = round(float(np.sin(radians)), 12) + 0.0
    return cos_t, sin_t


@dataclass
class LiveSamples:
    """
    Defined live-map cells visited on the correlation stride.

    Attributes:
        elevation: Elevation of each sample
        inverse_variance: 1 / variance of each sample (ones if unknown)
        offsets: ((rows - 1)/2 - i, (cols - 1)/2 - j), the sample's offset from
            the live map center in cells
        resolution: Live map resolution
    """
    elevation: np.ndarray
    inverse_variance: np.ndarray
    offsets: np.ndarray
    resolution: float

    @property
    def points(self) -> int:
        """Number of defined live samples."""
        return int(self.elevation.shape[0])

    def index_displacements(self, rotation: float) -> np.ndarray:
        """
        Reference-index displacement of every sample for a rotation.

        Returns:
            Array (N, 2) to add to the candidate anchor index.
        """
        cos_t, sin_t = rotation_terms(rotation)
        di = self.offsets[:, 0]
        dj = self.offsets[:, 1]
        rows = -(cos_t * di - sin_t * dj)
        cols = -(sin_t * di + cos_t * dj)
        return np.stack([rows, cols], axis=-1)


@dataclass
class MatchSet:
    """
    Paired elevations of one successful candidate.

    Attributes:
        live: Matched live elevations
        reference: Matched reference elevations
        live_inverse_variance: 1 / variance of the matched live cells
        points: Number of defined live samples considered
        live_mean: Mean of the matched live elevations
        reference_mean: Mean of the matched reference elevations
    """
    live: np.ndarray
    reference: np.ndarray
    live_inverse_variance: np.ndarray
    points: int
    live_mean: float
    reference_mean: float

    def __post_init__(self) -> None:
        if self.live.shape[0] == 0:
            raise MapFitDataError("A match set needs at least one matched sample")
        if not (self.live.shape == self.reference.shape == self.live_inverse_variance.shape):
            raise MapFitDataError("Matched sample arrays must have identical shapes")

    @property
    def matches(self) -> int:
        return int(self.live.shape[0])

    @property
    def overlap(self) -> float:
        """Fraction of live samples that found a defined reference cell."""
        return self.matches / self.points if self.points else 0.0


def target_indices(anchor: Union[Sequence[int], np.ndarray], displacements: np.ndarray) -> np.ndarray:
    """
    Reference logical indices of the live samples for an anchor index.

    Args:
        anchor: Logical reference index the live map center is placed on
        displacements: samples.index_displacements(rotation)

    Returns:
        Integer array (N, 2), not clipped to the reference map.
    """
    anchor = np.asarray(anchor, dtype=np.float64).reshape(2)
    return np.floor(anchor + displacements).astype(np.int64)


def sample_live_map(live: RasterMap, stride: int, layer: str = "elevation") -> LiveSamples:
    """
    Sample the live map on a regular stride over its full size.

    Logical rows 0, stride, ... up to size - stride are visited (same for
    columns); undefined elevations are skipped.

    Args:
        live: Live raster map
        stride: Correlation stride in cells
        layer: Elevation layer name

    Returns:
        LiveSamples of the defined cells.
    """
    if stride < 1:
        raise ValueError(f"stride must be at least 1, got {stride}")

    size = live.size
    rows = np.arange(0, size[0] - stride + 1, stride)
    cols = np.arange(0, size[1] - stride + 1, stride)
    grid_rows, grid_cols = np.meshgrid(rows, cols, indexing="ij")
    logical = np.stack([grid_rows.ravel(), grid_cols.ravel()], axis=-1)

    if logical.shape[0] == 0:
        empty = np.empty(0, dtype=np.float64)
        return LiveSamples(empty, empty.copy(), np.empty((0, 2)), live.resolution)

    buffer = logical_to_buffer(logical, size, live.start_index)
    elevation = live[layer][buffer[:, 0], buffer[:, 1]]
    defined = np.isfinite(elevation)

    if live.has_layer("variance"):
        variance = live["variance"][buffer[:, 0], buffer[:, 1]]
        with np.errstate(divide="ignore", invalid="ignore"):
            inverse_variance = 1.0 / variance
    else:
        inverse_variance = np.ones_like(elevation)

    offsets = np.stack(
        [(size[0] - 1) / 2.0 - logical[:, 0], (size[1] - 1) / 2.0 - logical[:, 1]], axis=-1
    ).astype(np.float64)

    return LiveSamples(
        elevation=elevation[defined].astype(np.float64),
        inverse_variance=inverse_variance[defined].astype(np.float64),
        offsets=offsets[defined],
        resolution=live.resolution,
    )


def match_samples(
    samples: LiveSamples,
    reference: RasterMap,
    candidate: Candidate,
    required_overlap: float,
    displacements: Optional[np.ndarray] = None,
    layer: str = "elevation",
) -> Optional[MatchSet]:
    """
    Pair live samples with reference cells for one candidate.

    Args:
        samples: Live samples (see sample_live_map)
        reference: Reference raster map
        candidate: Rotation and logical anchor index in the reference
        required_overlap: Fraction of live samples that must match
        displacements: Precomputed samples.index_displacements(candidate.rotation)
        layer: Elevation layer name

    Returns:
        MatchSet if more than points * required_overlap samples matched,
        otherwise None.
    """
    points = samples.points
    if points == 0:
        return None

    if displacements is None:
        displacements = samples.index_displacements(candidate.rotation)

    target = target_indices(candidate.index, displacements)

    # Drop samples that leave the reference map
    inside = index_in_range(target, reference.size)
    if not np.any(inside):
        return None

    buffer = logical_to_buffer(target[inside], reference.size, reference.start_index)
    reference_values = reference[layer][buffer[:, 0], buffer[:, 1]]
    defined = np.isfinite(reference_values)
    matches = int(np.count_nonzero(defined))

    # A zero overlap ratio must still reject an empty match
    if matches == 0 or not matches > points * required_overlap:
        return None

    live_values = samples.elevation[inside][defined]
    reference_values = reference_values[defined]
    return MatchSet(
        live=live_values,
        reference=reference_values,
        live_inverse_variance=samples.inverse_variance[inside][defined],
        points=points,
        live_mean=float(np.mean(live_values)),
        reference_mean=float(np.mean(reference_values)),
    )


def extract_matches(
    live: RasterMap,
    reference: RasterMap,
    candidate: Candidate,
    correlation_stride: int,
    required_overlap: float,
) -> Optional[MatchSet]:
    """
    Sample the live map and match it against the reference for one candidate.

    Convenience wrapper around sample_live_map and match_samples; the search
    engine samples the live map once and calls match_samples directly.
    """
    samples = sample_live_map(live, correlation_stride)
    return match_samples(samples, reference, candidate, required_overlap)
