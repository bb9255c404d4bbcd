#!/usr/bin/env python3
"""
Exception types raised by the navigation helpers.

Every failure derives from CadetNavError, which is itself a ValueError, so
callers can catch the whole family in one place and keep their prior state.
"""


class CadetNavError(ValueError):
    """Base class for all cadetnav failures."""

    pass


class InvalidPrecisionError(CadetNavError):
    """Raised when a grid or location-code precision is not supported."""

    pass


class InvalidFormatError(CadetNavError):
    """Raised for wrong digit counts, non-digit characters or non-numeric input."""

    pass


class OutOfRangeError(CadetNavError):
    """Raised when a latitude, longitude or grid digit falls outside its bounds."""

    pass


class MissingInputError(CadetNavError):
    """Raised when a required position, origin or reference is absent."""

    pass


class InvalidArgumentError(CadetNavError):
    """Raised for negative distances, non-finite bearings and similar arguments."""

    pass


class UnsupportedVersionError(CadetNavError):
    """Raised when a share snapshot declares a version other than the current one."""

    pass


class DecodeFailureError(CadetNavError):
    """Raised when a code cannot be decoded (bad base64, layout or alphabet)."""

    pass
