"""
Utilities for mapfit.
"""

from .synthetic import make_terrain, make_reference_map, crop_live_map

__all__ = ['make_terrain', 'make_reference_map', 'crop_live_map']
