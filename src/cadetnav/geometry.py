#!/usr/bin/env python3
"""
Position type and coordinate validation shared by all navigation helpers.

Positions are plain (latitude, longitude) pairs in decimal degrees. Anything
that comes from outside (UI input, decoded share payloads, GPX files) goes
through validate_position or normalize_position before it is used.
"""

from typing import Any, Dict, NamedTuple, Optional
import logging
import math

from .errors import InvalidFormatError, MissingInputError, OutOfRangeError

logger = logging.getLogger(__name__)

# Mean Earth radius in meters, used by every spherical and flat-earth formula
EARTH_RADIUS_METERS = 6371000.0

# Validated coordinates are rounded to 1e-6 degrees (~0.11 m)
COORDINATE_DECIMALS = 6


class Position(NamedTuple):
    """Represents a geographic position with latitude and longitude."""

    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        """Return the {lat, lng} mapping used by the share payload."""
        return {"lat": self.latitude, "lng": self.longitude}

    def __str__(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude in degrees into the range [-180, 180)."""
    wrapped = ((longitude + 540.0) % 360.0) - 180.0
    return -180.0 if wrapped >= 180.0 else wrapped


def _coerce_coordinate(value: Any, name: str) -> float:
    """Convert a single coordinate component to a finite float."""
    if value is None:
        raise MissingInputError(f"{name} is missing")
    if isinstance(value, bool):
        raise InvalidFormatError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        raise InvalidFormatError(f"{name} is too large to be a coordinate")
    except (TypeError, ValueError):
        raise InvalidFormatError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidFormatError(f"{name} must be finite, got {value!r}")
    return number


def _extract_components(candidate: Any) -> tuple:
    """Pull raw (lat, lng) components out of the accepted input shapes."""
    # Markers carry their coordinates under "position"
    if isinstance(candidate, dict) and "position" in candidate:
        candidate = candidate["position"]
    elif not isinstance(candidate, tuple) and hasattr(candidate, "position"):
        candidate = candidate.position
    if candidate is None:
        raise MissingInputError("Marker has no position")

    if isinstance(candidate, Position):
        return candidate.latitude, candidate.longitude
    if isinstance(candidate, dict):
        if "lat" in candidate or "lng" in candidate:
            return candidate.get("lat"), candidate.get("lng")
        return candidate.get("latitude"), candidate.get("longitude")
    if isinstance(candidate, (tuple, list)):
        if len(candidate) != 2:
            raise InvalidFormatError(
                f"Expected a (latitude, longitude) pair, got {len(candidate)} values"
            )
        return candidate[0], candidate[1]
    raise InvalidFormatError(f"Unsupported position value: {candidate!r}")


def coerce_position(candidate: Any) -> Position:
    """
    Check a position-like value without rounding it.

    The calculation helpers use this so intermediate results keep their full
    precision. Raises the same errors as validate_position.
    """
    if candidate is None:
        raise MissingInputError("Position is missing")

    raw_lat, raw_lng = _extract_components(candidate)
    lat = _coerce_coordinate(raw_lat, "Latitude")
    lng = _coerce_coordinate(raw_lng, "Longitude")

    if lat < -90.0 or lat > 90.0:
        raise OutOfRangeError(f"Latitude {lat} is outside [-90, 90]")
    if lng < -180.0 or lng > 180.0:
        raise OutOfRangeError(f"Longitude {lng} is outside [-180, 180]")

    return Position(latitude=lat, longitude=lng)


def validate_position(candidate: Any) -> Position:
    """
    Validate a position-like value and round it to 1e-6 degrees.

    Args:
        candidate: A Position, a (lat, lng) pair, a mapping with lat/lng
                   (or latitude/longitude) keys, or a marker with a position

    Returns:
        A new Position with rounded coordinates

    Raises:
        MissingInputError: If candidate or one of its components is None
        InvalidFormatError: If a component is not a finite number
        OutOfRangeError: If latitude or longitude exceeds its bounds
    """
    position = coerce_position(candidate)
    return Position(
        latitude=round(position.latitude, COORDINATE_DECIMALS),
        longitude=round(position.longitude, COORDINATE_DECIMALS),
    )


def normalize_position(candidate: Any) -> Optional[Position]:
    """
    Lenient variant of validate_position.

    Returns:
        The validated Position, or None if candidate is absent or invalid
    """
    if candidate is None:
        return None
    try:
        return validate_position(candidate)
    except (InvalidFormatError, MissingInputError, OutOfRangeError) as e:
        logger.debug(f"Discarding invalid position {candidate!r}: {e}")
        return None
