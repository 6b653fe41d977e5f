"""
Tests for the raster map and its index helpers.
"""

import numpy as np
import pytest

from mapfit.core.raster import (
    RasterMap,
    buffer_to_logical,
    index_in_range,
    logical_to_buffer,
    sparse_indices,
    wrap_index,
)
from mapfit.exceptions import MapFitDataError


class TestIndexHelpers:
    """Tests for the circular buffer index functions."""

    def test_wrap_index(self):
        """Negative and oversized indices wrap into the map."""
        np.testing.assert_array_equal(wrap_index([-1, 7], [4, 6]), [3, 1])
        np.testing.assert_array_equal(wrap_index([[4, 6], [2, 3]], [4, 6]), [[0, 0], [2, 3]])

    def test_logical_buffer_conversion(self):
        """Logical and buffer indices convert back and forth through the start index."""
        size, start = [4, 6], [1, 2]
        np.testing.assert_array_equal(logical_to_buffer([3, 5], size, start), [0, 1])
        np.testing.assert_array_equal(buffer_to_logical([0, 1], size, start), [3, 5])

    def test_index_in_range(self):
        indices = np.array([[0, 0], [3, 5], [4, 0], [-1, 2]])
        np.testing.assert_array_equal(index_in_range(indices, [4, 6]), [True, True, False, False])

    def test_sparse_indices_row_major(self):
        """Sparse indices visit every stride-th cell row by row."""
        indices = list(sparse_indices((5, 5), 2))
        assert len(indices) == 9
        assert indices[:4] == [(0, 0), (0, 2), (0, 4), (2, 0)]
        assert indices[-1] == (4, 4)

    def test_sparse_indices_invalid_stride(self):
        with pytest.raises(ValueError):
            list(sparse_indices((5, 5), 0))


class TestRasterMap:
    """Tests for the RasterMap class."""

    def test_geometry(self, ramp_map):
        """Size, length and layer names reflect the stored data."""
        np.testing.assert_array_equal(ramp_map.size, [4, 6])
        np.testing.assert_allclose(ramp_map.length, [2.0, 3.0])
        assert ramp_map.layers == ["elevation"]
        assert ramp_map.has_layer("elevation")
        assert "variance" not in ramp_map

    def test_cell_positions(self, ramp_map):
        """Row 0, col 0 is the cell at the +x, +y corner."""
        np.testing.assert_allclose(ramp_map.get_position((0, 0)), [1.75, -0.75])
        np.testing.assert_allclose(ramp_map.get_position((3, 5)), [0.25, -3.25])
        assert ramp_map.get_index((1.75, -0.75)) == (0, 0)
        assert ramp_map.get_index((0.3, -3.2)) == (3, 5)

    def test_position_outside(self, ramp_map):
        assert ramp_map.get_index((5.0, 0.0)) is None
        assert not ramp_map.is_inside((1.0, 5.0))
        with pytest.raises(MapFitDataError):
            ramp_map.at_position("elevation", (5.0, 0.0))

    def test_index_at_vectorized(self, ramp_map):
        """index_at returns indices and an inside mask for many positions."""
        positions = np.array([[1.75, -0.75], [0.25, -3.25], [10.0, 10.0]])
        indices, inside = ramp_map.index_at(positions)
        np.testing.assert_array_equal(indices[:2], [[0, 0], [3, 5]])
        np.testing.assert_array_equal(inside, [True, True, False])

    def test_value_access(self, ramp_map):
        assert ramp_map.at("elevation", (1, 2)) == 12.0
        assert ramp_map.at_position("elevation", ramp_map.get_position((2, 4))) == 24.0

        ramp_map.set_at("elevation", (0, 0), np.nan)
        assert not ramp_map.is_valid("elevation", (0, 0))
        assert ramp_map.is_valid("elevation", (0, 1))

    def test_circular_buffer_access(self):
        """With a start index, logical access reads the rolled buffer slot."""
        rows, cols = np.mgrid[:4, :6]
        logical = 10.0 * rows + cols
        raster = RasterMap(
            {"elevation": np.roll(logical, shift=(1, 2), axis=(0, 1))},
            resolution=0.5,
            start_index=(1, 2),
        )

        assert raster.at("elevation", (0, 0)) == 0.0
        assert raster.at("elevation", (3, 5)) == 35.0
        np.testing.assert_array_equal(raster.logical_layer("elevation"), logical)

    def test_start_index_wrapped(self):
        raster = RasterMap({"elevation": np.zeros((4, 6))}, 1.0, start_index=(5, -1))
        np.testing.assert_array_equal(raster.start_index, [1, 5])

    def test_from_geometry(self):
        """from_geometry allocates NaN layers covering the requested extent."""
        raster = RasterMap.from_geometry((2.0, 3.0), 0.5, position=(1.0, 2.0), layers=["a", "b"])
        np.testing.assert_array_equal(raster.size, [4, 6])
        assert raster.layers == ["a", "b"]
        assert np.all(np.isnan(raster["a"]))
        np.testing.assert_allclose(raster.position, [1.0, 2.0])

    def test_add_layer(self, ramp_map):
        ramp_map.add_layer("variance", 0.25)
        assert np.all(ramp_map["variance"] == 0.25)

        with pytest.raises(MapFitDataError):
            ramp_map.add_layer("bad", np.zeros((3, 3)))
        with pytest.raises(MapFitDataError):
            ramp_map.add_layer("flat", np.zeros(24))

    def test_missing_layer(self, ramp_map):
        with pytest.raises(MapFitDataError, match="variance"):
            ramp_map["variance"]
        with pytest.raises(MapFitDataError, match="variance"):
            ramp_map.require_layers("elevation", "variance")
        ramp_map.require_layers("elevation")

    def test_invalid_construction(self):
        with pytest.raises(MapFitDataError):
            RasterMap({}, 1.0)
        with pytest.raises(MapFitDataError):
            RasterMap({"elevation": np.zeros((2, 2))}, 0.0)
        with pytest.raises(MapFitDataError):
            RasterMap({"a": np.zeros((2, 2)), "b": np.zeros((2, 3))}, 1.0)

    def test_copy_is_independent(self, ramp_map):
        clone = ramp_map.copy()
        clone.set_at("elevation", (0, 0), -1.0)
        assert ramp_map.at("elevation", (0, 0)) == 0.0
        assert "RasterMap(size=(4, 6)" in repr(clone)
