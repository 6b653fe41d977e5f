#!/usr/bin/env python3
"""
Tests for mapfit Exceptions module.

This module contains unit tests for all exception classes defined in the
mapfit exceptions module.
"""

import pytest
from mapfit.exceptions import (
    MapFitException,
    MapFitDataError,
    MapFitConfigError,
    ZOffsetError,
)


class TestMapFitExceptions:
    """Test cases for mapfit exception classes."""

    def test_base_exception(self):
        """Test that MapFitException can be raised and caught properly."""
        with pytest.raises(MapFitException) as excinfo:
            raise MapFitException("Base mapfit exception")

        assert str(excinfo.value) == "Base mapfit exception"
        assert isinstance(excinfo.value, Exception)

    @pytest.mark.parametrize("error_class", [MapFitDataError, MapFitConfigError, ZOffsetError])
    def test_derived_exceptions(self, error_class):
        """Every specific error is caught as a MapFitException."""
        with pytest.raises(MapFitException) as excinfo:
            raise error_class("specific failure")

        assert isinstance(excinfo.value, error_class)
        assert str(excinfo.value) == "specific failure"

    def test_exceptions_are_distinct(self):
        """Specific errors do not catch each other."""
        with pytest.raises(MapFitDataError):
            try:
                raise MapFitDataError("data")
            except MapFitConfigError:
                pytest.fail("MapFitConfigError caught a MapFitDataError")
