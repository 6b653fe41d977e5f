#!/usr/bin/env python3
"""
Raster map module for mapfit.

This module provides the RasterMap class, a 2-D grid of named elevation
layers stored as a circular buffer, together with the index helpers used to
move between logical (spatially meaningful) and buffer (storage) indices.

Conventions:
  - Index (row, col): row grows along -x, col grows along -y.
  - Cell centers: position = map_position + 0.5 * length - (index + 0.5) * resolution
  - Buffer slot of a logical index: (index + start_index) mod size
  - NaN marks an undefined cell in every layer.
"""

import copy
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from mapfit.exceptions import MapFitDataError

# Set up logging
logger = logging.getLogger(__name__)

IndexLike = Union[Sequence[int], np.ndarray]
PositionLike = Union[Sequence[float], np.ndarray]


def wrap_index(index: IndexLike, size: IndexLike) -> np.ndarray:
    """
    Normalize an index (or an array of indices) into the range [0, size).

    Args:
        index: Integer index with trailing axis of length 2
        size: Map size (rows, cols)

    Returns:
        Integer array of the same shape with every component wrapped.
    """
    return np.mod(np.asarray(index, dtype=np.int64), np.asarray(size, dtype=np.int64))


def logical_to_buffer(index: IndexLike, size: IndexLike, start_index: IndexLike) -> np.ndarray:
    """Convert a logical index to the buffer slot that stores it."""
    return wrap_index(np.asarray(index, dtype=np.int64) + np.asarray(start_index, dtype=np.int64), size)


def buffer_to_logical(buffer_index: IndexLike, size: IndexLike, start_index: IndexLike) -> np.ndarray:
    """Convert a buffer slot back to its logical index."""
    return wrap_index(np.asarray(buffer_index, dtype=np.int64) - np.asarray(start_index, dtype=np.int64), size)


def index_in_range(index: IndexLike, size: IndexLike) -> np.ndarray:
    """
    Check whether indices lie within [0, size) on both axes.

    Returns:
        Boolean (array) that is True where the index is inside the map.
    """
    index = np.asarray(index)
    size = np.asarray(size)
    return np.all((index >= 0) & (index < size), axis=-1)


def sparse_indices(size: IndexLike, stride: int) -> Iterator[Tuple[int, int]]:
    """
    Iterate logical indices on a regular stride, row-major.

    Args:
        size: Map size (rows, cols)
        stride: Step between visited rows and columns

    Yields:
        (row, col) tuples
    """
    if stride < 1:
        raise ValueError(f"stride must be at least 1, got {stride}")
    rows, cols = int(size[0]), int(size[1])
    for row in range(0, rows, stride):
        for col in range(0, cols, stride):
            yield row, col


class RasterMap:
    """
    Grid of named scalar layers over a rectangular region.

    All layers share the same shape and are stored in buffer order; the
    start index describes where the circular buffer wraps.

    Attributes:
        resolution (float): Edge length of one cell in map units.
        position (np.ndarray): World (x, y) of the map center.
        start_index (np.ndarray): Buffer slot holding logical index (0, 0).
        frame_id (str): Name of the coordinate frame.
    """

    def __init__(
        self,
        layers: Dict[str, np.ndarray],
        resolution: float,
        position: PositionLike = (0.0, 0.0),
        start_index: IndexLike = (0, 0),
        frame_id: str = "map",
    ) -> None:
        """
        Initialize a raster map from existing layer data.

        Args:
            layers: Mapping of layer name to 2-D array (buffer order)
            resolution: Cell edge length, must be positive
            position: World position of the map center
            start_index: Circular buffer start index
            frame_id: Coordinate frame name

        Raises:
            MapFitDataError: If the layers are empty, not 2-D, of different
                shapes, or the resolution is not positive.
        """
        if not layers:
            raise MapFitDataError("A raster map needs at least one layer")
        if resolution is None or not np.isfinite(resolution) or resolution <= 0:
            raise MapFitDataError(f"Resolution must be positive, got {resolution}")

        self.resolution = float(resolution)
        self.position = np.asarray(position, dtype=np.float64).reshape(2)
        self.frame_id = frame_id
        self._layers: Dict[str, np.ndarray] = {}
        self._size: Optional[Tuple[int, int]] = None

        for name, data in layers.items():
            self.add_layer(name, data)

        self.start_index = wrap_index(np.asarray(start_index).reshape(2), self._size)

    @classmethod
    def from_geometry(
        cls,
        length: PositionLike,
        resolution: float,
        position: PositionLike = (0.0, 0.0),
        layers: Iterable[str] = ("elevation",),
        frame_id: str = "map",
    ) -> "RasterMap":
        """
        Create an empty (all NaN) raster covering a given extent.

        The number of cells per axis is the rounded ratio of length to
        resolution, so the effective length may differ slightly from the
        requested one.

        Args:
            length: Extent (x, y) in map units
            resolution: Cell edge length
            position: World position of the map center
            layers: Names of the layers to allocate
            frame_id: Coordinate frame name

        Returns:
            New RasterMap with NaN-filled layers.
        """
        if resolution is None or resolution <= 0:
            raise MapFitDataError(f"Resolution must be positive, got {resolution}")
        length = np.asarray(length, dtype=np.float64).reshape(2)
        rows = max(1, int(round(length[0] / resolution)))
        cols = max(1, int(round(length[1] / resolution)))
        names = list(layers)
        if not names:
            raise MapFitDataError("A raster map needs at least one layer")
        data = {name: np.full((rows, cols), np.nan, dtype=np.float64) for name in names}
        return cls(data, resolution, position=position, frame_id=frame_id)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def size(self) -> np.ndarray:
        """Number of cells (rows, cols)."""
        return np.asarray(self._size, dtype=np.int64)

    @property
    def length(self) -> np.ndarray:
        """Extent (x, y) of the map in map units."""
        return self.size.astype(np.float64) * self.resolution

    @property
    def layers(self) -> List[str]:
        """Names of the stored layers."""
        return list(self._layers.keys())

    def has_layer(self, name: str) -> bool:
        return name in self._layers

    def get_position(self, index: IndexLike) -> np.ndarray:
        """
        World position of the center of a logical cell.

        Args:
            index: Logical index (row, col) or array of indices (..., 2)

        Returns:
            Array of positions with the same leading shape.
        """
        index = np.asarray(index, dtype=np.float64)
        return self.position + 0.5 * self.length - (index + 0.5) * self.resolution

    def _continuous_index(self, position: PositionLike) -> np.ndarray:
        position = np.asarray(position, dtype=np.float64)
        return (self.position + 0.5 * self.length - position) / self.resolution

    def get_index(self, position: PositionLike) -> Optional[Tuple[int, int]]:
        """
        Logical index of the cell containing a world position.

        Returns:
            (row, col) tuple, or None if the position is outside the map.
        """
        index = np.floor(self._continuous_index(position)).astype(np.int64)
        if not index_in_range(index, self.size):
            return None
        return int(index[0]), int(index[1])

    def index_at(self, positions: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vectorized position lookup.

        Args:
            positions: Array of shape (N, 2)

        Returns:
            Tuple (indices, inside) where indices has shape (N, 2) and inside
            is a boolean mask of positions that fall within the map.
        """
        indices = np.floor(self._continuous_index(positions)).astype(np.int64)
        return indices, index_in_range(indices, self.size)

    def is_inside(self, position: PositionLike) -> bool:
        return self.get_index(position) is not None

    # ------------------------------------------------------------------
    # Layer access
    # ------------------------------------------------------------------

    def add_layer(self, name: str, data: Union[np.ndarray, float] = np.nan) -> None:
        """
        Add or replace a layer.

        Args:
            name: Layer name
            data: 2-D array in buffer order, or a scalar fill value

        Raises:
            MapFitDataError: If the array is not 2-D or its shape does not
                match the existing layers.
        """
        if np.isscalar(data):
            if self._size is None:
                raise MapFitDataError("Cannot add a scalar layer to a map without size")
            array = np.full(self._size, float(data), dtype=np.float64)
        else:
            array = np.asarray(data, dtype=np.float64)
            if array.ndim != 2:
                raise MapFitDataError(f"Layer '{name}' must be 2-D, got shape {array.shape}")
            if self._size is None:
                self._size = (int(array.shape[0]), int(array.shape[1]))
            elif array.shape != self._size:
                raise MapFitDataError(
                    f"Layer '{name}' has shape {array.shape}, expected {self._size}"
                )
        self._layers[name] = array

    def __getitem__(self, name: str) -> np.ndarray:
        """Raw layer data in buffer order."""
        try:
            return self._layers[name]
        except KeyError:
            raise MapFitDataError(f"Layer '{name}' not found (available: {self.layers})") from None

    def __contains__(self, name: str) -> bool:
        return name in self._layers

    def require_layers(self, *names: str) -> None:
        """Raise MapFitDataError unless every named layer exists."""
        missing = [name for name in names if name not in self._layers]
        if missing:
            raise MapFitDataError(f"Raster map is missing layer(s): {', '.join(missing)}")

    def at(self, name: str, index: IndexLike) -> float:
        """Value of a layer at a logical index."""
        row, col = logical_to_buffer(index, self.size, self.start_index)
        return float(self[name][row, col])

    def set_at(self, name: str, index: IndexLike, value: float) -> None:
        """Set a layer value at a logical index."""
        row, col = logical_to_buffer(index, self.size, self.start_index)
        self[name][row, col] = value

    def at_position(self, name: str, position: PositionLike) -> float:
        """
        Value of the cell containing a world position.

        Raises:
            MapFitDataError: If the position is outside the map.
        """
        index = self.get_index(position)
        if index is None:
            raise MapFitDataError(f"Position {tuple(position)} is outside the map")
        return self.at(name, index)

    def is_valid(self, name: str, index: IndexLike) -> bool:
        """True if the layer holds a defined (finite) value at the index."""
        return bool(np.isfinite(self.at(name, index)))

    def logical_layer(self, name: str) -> np.ndarray:
        """Copy of a layer rearranged so that array[i, j] is logical cell (i, j)."""
        start = self.start_index
        return np.roll(self[name], shift=(-int(start[0]), -int(start[1])), axis=(0, 1))

    def copy(self) -> "RasterMap":
        """Deep copy of the map and all its layers."""
        return copy.deepcopy(self)

    def __repr__(self) -> str:
        return (
            f"RasterMap(size={tuple(self.size)}, resolution={self.resolution}, "
            f"position={tuple(self.position)}, start_index={tuple(self.start_index)}, "
            f"layers={self.layers})"
        )
