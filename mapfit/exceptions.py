#!/usr/bin/env python3
"""
mapfit Exceptions

This module defines custom exceptions used throughout the mapfit library.
"""

class MapFitException(Exception):
    """Base class for all mapfit exceptions."""
    pass

class MapFitDataError(MapFitException):
    """Exception raised when a raster map is malformed or lacks a required layer."""
    pass

class MapFitConfigError(MapFitException):
    """Exception raised when a search configuration is invalid or unreadable."""
    pass

class ZOffsetError(MapFitException):
    """Exception raised when no samples overlap to estimate the vertical offset."""
    pass
