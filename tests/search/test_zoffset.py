"""
Tests for the vertical offset estimation.
"""

import numpy as np
import pytest

from mapfit.exceptions import ZOffsetError
from mapfit.search.zoffset import estimate_z_offset
from mapfit.utils.synthetic import crop_live_map, make_reference_map


class TestEstimateZOffset:
    """Tests for estimate_z_offset."""

    def setup_method(self):
        self.reference = make_reference_map((60, 60), resolution=0.1, seed=11)

    @pytest.mark.parametrize("size", [15, 20, 21])
    @pytest.mark.parametrize("rotation", [0.0, 90.0, 180.0, 270.0])
    def test_true_pose(self, rotation, size):
        """At the true pose the offset is the negated live elevation shift, for odd and even sizes."""
        live = crop_live_map(self.reference, (30, 30), size=(size, size), rotation=rotation, z_shift=0.75)
        z = estimate_z_offset(live, self.reference, live.position, rotation, 2)
        assert z == pytest.approx(-0.75)

    @pytest.mark.parametrize("size", [(41, 41), (40, 40), (21, 30)])
    def test_identical_maps(self, size):
        """A map compared with itself, anchored at its own center cell, has no offset."""
        reference = make_reference_map(size, resolution=0.1, seed=11)
        center = reference.get_position((size[0] // 2, size[1] // 2))
        z = estimate_z_offset(reference.copy(), reference, center, 0.0, 1)
        assert z == pytest.approx(0.0, abs=1e-12)

    def test_partial_overlap(self):
        """Samples outside the reference are ignored."""
        live = crop_live_map(self.reference, (5, 5), size=(20, 20), z_shift=-0.2)
        assert np.isnan(live.at("elevation", (0, 0)))
        z = estimate_z_offset(live, self.reference, live.position, 0.0, 1)
        assert z == pytest.approx(0.2)

    def test_outside_reference(self):
        live = crop_live_map(self.reference, (30, 30), size=(20, 20))
        with pytest.raises(ZOffsetError):
            estimate_z_offset(live, self.reference, (100.0, 100.0), 0.0, 2)

    def test_undefined_reference(self):
        live = crop_live_map(self.reference, (30, 30), size=(20, 20))
        self.reference["elevation"][:] = np.nan
        with pytest.raises(ZOffsetError):
            estimate_z_offset(live, self.reference, live.position, 0.0, 2)

    def test_undefined_live_map(self):
        live = crop_live_map(self.reference, (30, 30), size=(20, 20))
        live["elevation"][:] = np.nan
        with pytest.raises(ZOffsetError):
            estimate_z_offset(live, self.reference, live.position, 0.0, 2)
