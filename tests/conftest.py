"""
Pytest fixtures shared across test modules.
"""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from mapfit.core.config import SearchConfig
from mapfit.core.raster import RasterMap
from mapfit.utils.synthetic import crop_live_map, make_reference_map


@pytest.fixture
def reference_map():
    """80x80 synthetic reference map at 0.1 resolution centered at the origin."""
    return make_reference_map((80, 80), resolution=0.1, seed=7)


@pytest.fixture
def live_map(reference_map):
    """20x20 live map cut out of the reference at index (40, 40) without rotation."""
    return crop_live_map(reference_map, (40, 40), size=(20, 20))


@pytest.fixture
def fast_config():
    """Configuration with dense live sampling, rotation search disabled."""
    return SearchConfig(correlation_stride=2)


@pytest.fixture
def ramp_map():
    """Small 4x6 map whose elevation equals 10 * row + col in logical order."""
    rows, cols = np.mgrid[:4, :6]
    return RasterMap({"elevation": 10.0 * rows + cols}, resolution=0.5, position=(1.0, -2.0))
