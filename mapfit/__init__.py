"""
mapfit Package.

Exhaustive search of a live elevation map's pose (position, rotation and
vertical offset) inside a larger reference elevation map, scored with
normalized cross-correlation, squared and absolute differences and mutual
information.
"""

__version__ = "0.1.0"

# Import the main exception classes for easy access
from mapfit.exceptions import MapFitException, MapFitDataError, MapFitConfigError, ZOffsetError

# Import core functionality
from mapfit.core import RasterMap, SearchConfig, load_config, save_config
from mapfit.search import MapFitter, SearchResult, PoseEstimate, search, estimate_z_offset

__all__ = [
    'MapFitException',
    'MapFitDataError',
    'MapFitConfigError',
    'ZOffsetError',
    'RasterMap',
    'SearchConfig',
    'load_config',
    'save_config',
    'MapFitter',
    'SearchResult',
    'PoseEstimate',
    'search',
    'estimate_z_offset',
]
