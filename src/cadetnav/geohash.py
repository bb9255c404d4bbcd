#!/usr/bin/env python3
"""
Geohash location codes for short callouts.

A code is built by alternately bisecting the longitude and latitude ranges
(longitude first) and emitting one base-32 character per five bits. Shorter
codes describe larger cells.
"""

from typing import Any, Optional, Tuple
import logging
import math

from .errors import DecodeFailureError, InvalidPrecisionError
from .geometry import (
    EARTH_RADIUS_METERS,
    Position,
    coerce_position,
)

logger = logging.getLogger(__name__)

GEOHASH_ALPHABET = "0123456789bcdefghjkmnpqrstuvwxyz"
_DECODE_MAP = {c: i for i, c in enumerate(GEOHASH_ALPHABET)}

DEFAULT_LOCATION_PRECISION = 9
MIN_LOCATION_PRECISION = 1
MAX_LOCATION_PRECISION = 12

_BIT_MASKS = (16, 8, 4, 2, 1)


def _check_precision(precision: Any) -> int:
    if (
        isinstance(precision, bool)
        or not isinstance(precision, int)
        or not MIN_LOCATION_PRECISION <= precision <= MAX_LOCATION_PRECISION
    ):
        raise InvalidPrecisionError(
            f"Location code precision must be between {MIN_LOCATION_PRECISION} "
            f"and {MAX_LOCATION_PRECISION}, got {precision!r}"
        )
    return precision


def encode_location(position: Any, precision: int = DEFAULT_LOCATION_PRECISION) -> str:
    """
    Encode a position as a geohash location code.

    Args:
        position: Position to encode
        precision: Number of characters, 1 to 12

    Returns:
        Lower-case base-32 code of length precision

    Raises:
        InvalidPrecisionError: If precision is outside [1, 12]
        MissingInputError, InvalidFormatError, OutOfRangeError: If position
            is not a valid position
    """
    precision = _check_precision(precision)
    point = coerce_position(position)

    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0
    even = True
    chars = []

    while len(chars) < precision:
        value = 0
        for mask in _BIT_MASKS:
            if even:
                mid = (lon_min + lon_max) / 2.0
                if point.longitude >= mid:
                    value |= mask
                    lon_min = mid
                else:
                    lon_max = mid
            else:
                mid = (lat_min + lat_max) / 2.0
                if point.latitude >= mid:
                    value |= mask
                    lat_min = mid
                else:
                    lat_max = mid
            even = not even
        chars.append(GEOHASH_ALPHABET[value])

    return "".join(chars)


def decode_location_bounds(code: Any) -> Tuple[float, float, float, float]:
    """
    Decode a location code into its bounding cell.

    Args:
        code: Location code, case-insensitive

    Returns:
        Tuple of (south, west, north, east) in decimal degrees

    Raises:
        DecodeFailureError: If code is empty, too long or contains a
            character outside the geohash alphabet
    """
    if not isinstance(code, str):
        raise DecodeFailureError(f"Location code must be a string, got {code!r}")
    normalized = code.strip().lower()
    if not normalized:
        raise DecodeFailureError("Location code is empty")
    if len(normalized) > MAX_LOCATION_PRECISION:
        raise DecodeFailureError(
            f"Location code is longer than {MAX_LOCATION_PRECISION} characters"
        )

    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0
    even = True

    for c in normalized:
        try:
            value = _DECODE_MAP[c]
        except KeyError:
            raise DecodeFailureError(f"Invalid location code character: {c!r}")

        for mask in _BIT_MASKS:
            if even:
                mid = (lon_min + lon_max) / 2.0
                if value & mask:
                    lon_min = mid
                else:
                    lon_max = mid
            else:
                mid = (lat_min + lat_max) / 2.0
                if value & mask:
                    lat_min = mid
                else:
                    lat_max = mid
            even = not even

    return lat_min, lon_min, lat_max, lon_max


def decode_location(code: Any) -> Optional[Position]:
    """
    Decode a location code to the center of its cell.

    Returns:
        The midpoint Position, or None if the code is invalid
    """
    try:
        south, west, north, east = decode_location_bounds(code)
    except DecodeFailureError as e:
        logger.debug(f"Could not decode location code {code!r}: {e}")
        return None
    # Not rounded: a 12-character cell is narrower than 1e-6 degrees
    return Position(latitude=(south + north) / 2.0, longitude=(west + east) / 2.0)


def location_error_meters(precision: int) -> Tuple[float, float]:
    """
    Approximate half-size of a cell at the equator.

    Informational only: a 9-character code is good to about +/-2.4 m.

    Returns:
        Tuple of (latitude_error, longitude_error) in meters
    """
    precision = _check_precision(precision)
    total_bits = precision * 5
    lon_bits = (total_bits + 1) // 2
    lat_bits = total_bits // 2
    meters_per_degree = math.pi * EARTH_RADIUS_METERS / 180.0
    lat_error = 180.0 / 2**lat_bits / 2 * meters_per_degree
    lon_error = 360.0 / 2**lon_bits / 2 * meters_per_degree
    return lat_error, lon_error
