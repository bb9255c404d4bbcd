#!/usr/bin/env python3
"""
Great-circle bearing, distance and destination calculations.

All functions treat the Earth as a sphere of radius EARTH_RADIUS_METERS and
take positions in decimal degrees.
"""

from typing import Any, Optional
import logging
import math

from .errors import InvalidArgumentError, MissingInputError
from .geometry import (
    EARTH_RADIUS_METERS,
    Position,
    coerce_position,
    normalize_longitude,
)

logger = logging.getLogger(__name__)

# NATO mils per full circle
MILS_PER_CIRCLE = 6400.0


def _require_position(candidate: Any, name: str) -> Position:
    if candidate is None:
        raise MissingInputError(f"{name} position is missing")
    return coerce_position(candidate)


def bearing_between(start: Any, end: Any) -> float:
    """
    Calculate the initial bearing from start to end.

    Args:
        start: Starting position
        end: Ending position

    Returns:
        Forward azimuth in degrees, in the range [0, 360)

    Raises:
        MissingInputError: If either position is None
    """
    pos1 = _require_position(start, "Start")
    pos2 = _require_position(end, "End")

    lat1 = math.radians(pos1.latitude)
    lat2 = math.radians(pos2.latitude)
    dlon = math.radians(pos2.longitude - pos1.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )

    bearing = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # -0.0 and tiny negatives can round up to exactly 360.0
    if bearing >= 360.0:
        bearing = 0.0
    return bearing


def distance_between(start: Any, end: Any) -> float:
    """
    Calculate the haversine great-circle distance between two positions.

    Args:
        start: First position
        end: Second position

    Returns:
        Distance in meters

    Raises:
        MissingInputError: If either position is None
    """
    pos1 = _require_position(start, "Start")
    pos2 = _require_position(end, "End")

    lat1, lon1 = math.radians(pos1.latitude), math.radians(pos1.longitude)
    lat2, lon2 = math.radians(pos2.latitude), math.radians(pos2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a a hair above 1 for antipodal points
    a = min(1.0, a)

    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def destination_point(
    origin: Any, bearing_degrees: float, distance_meters: float
) -> Position:
    """
    Project a point from origin along a bearing for a given distance.

    Uses the direct solution on a sphere (spherical law of cosines).

    Args:
        origin: Starting position
        bearing_degrees: Bearing in degrees, reduced modulo 360
        distance_meters: Non-negative distance in meters

    Returns:
        Destination position with longitude normalised to [-180, 180)

    Raises:
        MissingInputError: If origin is None
        InvalidArgumentError: If the bearing is not a finite number or the
            distance is negative or not finite
    """
    start = _require_position(origin, "Origin")

    if (
        bearing_degrees is None
        or isinstance(bearing_degrees, bool)
        or not isinstance(bearing_degrees, (int, float))
        or not math.isfinite(bearing_degrees)
    ):
        raise InvalidArgumentError(f"Bearing must be a number, got {bearing_degrees!r}")
    if (
        distance_meters is None
        or isinstance(distance_meters, bool)
        or not isinstance(distance_meters, (int, float))
        or not math.isfinite(distance_meters)
        or distance_meters < 0
    ):
        raise InvalidArgumentError(
            f"Distance must be a non-negative number, got {distance_meters!r}"
        )

    angular_distance = distance_meters / EARTH_RADIUS_METERS
    bearing = math.radians(bearing_degrees % 360.0)
    lat1 = math.radians(start.latitude)
    lon1 = math.radians(start.longitude)

    sin_lat1 = math.sin(lat1)
    cos_lat1 = math.cos(lat1)
    sin_angular = math.sin(angular_distance)
    cos_angular = math.cos(angular_distance)

    sin_lat2 = sin_lat1 * cos_angular + cos_lat1 * sin_angular * math.cos(bearing)
    lat2 = math.asin(max(-1.0, min(1.0, sin_lat2)))
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * sin_angular * cos_lat1,
        cos_angular - sin_lat1 * math.sin(lat2),
    )

    return Position(
        latitude=math.degrees(lat2),
        longitude=normalize_longitude(math.degrees(lon2)),
    )


def relative_bearing(
    heading: Optional[float], target_bearing: Optional[float]
) -> Optional[float]:
    """
    Clockwise offset from the current heading to a target bearing.

    This is the angle an on-screen indicator is rotated by to point at the
    target.

    Returns:
        Degrees in [0, 360), or None if either input is None
    """
    if heading is None or target_bearing is None:
        return None
    offset = (target_bearing - heading + 360.0) % 360.0
    return 0.0 if offset >= 360.0 else offset


def mils_to_degrees(mils: float) -> float:
    """Convert NATO mils (6400 per circle) to degrees."""
    return mils * 360.0 / MILS_PER_CIRCLE


def degrees_to_mils(degrees: float) -> float:
    """Convert degrees to NATO mils (6400 per circle)."""
    return degrees * MILS_PER_CIRCLE / 360.0


def bearing_in_mils(degrees: float) -> float:
    """Express a bearing in mils, wrapped into [0, 6400)."""
    return degrees_to_mils(degrees) % MILS_PER_CIRCLE


def format_distance(distance_meters: Optional[float]) -> str:
    """
    Format a distance for display.

    Returns:
        "N/A" when unknown, whole meters under 1 km, otherwise kilometers
        with two decimals
    """
    if distance_meters is None:
        return "N/A"
    if distance_meters < 1000:
        return f"{distance_meters:.0f} m"
    return f"{distance_meters / 1000:.2f} km"
