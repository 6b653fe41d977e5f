"""
Core data types for mapfit: raster maps and search configuration.
"""

from mapfit.core.raster import (
    RasterMap,
    wrap_index,
    logical_to_buffer,
    buffer_to_logical,
    index_in_range,
    sparse_indices,
)
from mapfit.core.config import SearchConfig, load_config, save_config, METRIC_NAMES

__all__ = [
    'RasterMap',
    'wrap_index',
    'logical_to_buffer',
    'buffer_to_logical',
    'index_in_range',
    'sparse_indices',
    'SearchConfig',
    'load_config',
    'save_config',
    'METRIC_NAMES',
]
