#!/usr/bin/env python3
"""
Local grid references anchored at a caller-supplied origin.

A grid reference is a pair of fixed-width digit strings (easting, northing).
With 3-figure precision one unit is 100 m, with 4-figure precision 10 m. A
reference is turned into a position by scaling the digit difference to the
origin reference into meters and applying a flat-earth (equirectangular)
offset to the origin position. There is no ellipsoidal or UTM correction, so
results are only accurate within a few kilometers of the origin.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional
import logging
import math

from .errors import (
    InvalidFormatError,
    InvalidPrecisionError,
    MissingInputError,
    OutOfRangeError,
)
from .geometry import (
    EARTH_RADIUS_METERS,
    Position,
    coerce_position,
    normalize_longitude,
)

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 3

# Meters represented by one grid unit at each supported precision
UNIT_METERS = {3: 100, 4: 10}

# Offsets beyond this are still projected but logged as unreliable
MAX_GRID_OFFSET_METERS = 10000.0


@dataclass(frozen=True)
class GridReference:
    """An easting/northing digit pair, optionally tagged with its precision."""

    easting: str
    northing: str
    precision: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.easting} {self.northing}"


@dataclass(frozen=True)
class GridOrigin:
    """A position on the map paired with the grid reference it represents."""

    position: Position
    reference: GridReference

    def with_precision(self, precision: Any) -> "GridOrigin":
        """Return a copy whose reference is tagged with the clamped precision."""
        return replace(
            self, reference=replace(self.reference, precision=clamp_precision(precision))
        )

    def to_position(
        self, target: GridReference, precision: Optional[int] = None
    ) -> Position:
        """Resolve a target reference relative to this origin."""
        return grid_to_position(self.position, self.reference, target, precision)

    def reference_for(
        self, point: Any, precision: Optional[int] = None
    ) -> GridReference:
        """Compute the grid reference of a point relative to this origin."""
        return position_to_grid_reference(
            self.position, self.reference, point, precision
        )


def clamp_precision(precision: Any) -> int:
    """Lenient precision used when storing a setting: 4 stays 4, anything else is 3."""
    if isinstance(precision, bool) or not isinstance(precision, int):
        return DEFAULT_PRECISION
    return 4 if precision == 4 else DEFAULT_PRECISION


def _check_precision(precision: Any) -> int:
    if (
        isinstance(precision, bool)
        or not isinstance(precision, int)
        or precision not in UNIT_METERS
    ):
        raise InvalidPrecisionError(
            f"Unsupported grid precision {precision!r}. Use 3 or 4 figure references."
        )
    return int(precision)


def resolve_precision(
    precision: Optional[int] = None, *references: Optional[GridReference]
) -> int:
    """
    Pick the precision for a grid operation.

    An explicit precision wins, then the first reference that carries its own
    precision, then DEFAULT_PRECISION.

    Raises:
        InvalidPrecisionError: If the resolved value is not 3 or 4
    """
    if precision is not None:
        return _check_precision(precision)
    for reference in references:
        if reference is not None and reference.precision is not None:
            return _check_precision(reference.precision)
    return DEFAULT_PRECISION


def unit_meters(precision: int) -> int:
    """Meters per grid unit: 100 for 3-figure, 10 for 4-figure references."""
    return UNIT_METERS[_check_precision(precision)]


def parse_digits(text: Any, precision: int) -> int:
    """
    Parse one half of a grid reference.

    Args:
        text: Digit string; surrounding whitespace is ignored
        precision: Required number of digits

    Returns:
        The integer value (leading zeros are not kept)

    Raises:
        MissingInputError: If text is None or blank
        InvalidFormatError: If text has non-digit characters or the wrong length
        InvalidPrecisionError: If precision is not supported
    """
    precision = _check_precision(precision)
    if text is None:
        raise MissingInputError("Grid digits are missing")
    trimmed = str(text).strip()
    if not trimmed:
        raise MissingInputError("Grid digits are missing")
    # str.isdigit accepts superscripts and other unicode digits
    if not all(c in "0123456789" for c in trimmed):
        raise InvalidFormatError("Grid references must contain digits only.")
    if len(trimmed) != precision:
        raise InvalidFormatError(
            f"Expected {precision} digits for this precision setting, got {len(trimmed)}."
        )
    return int(trimmed)


def format_digits(value: int, precision: int) -> str:
    """
    Render a grid digit value zero-padded to exactly precision characters.

    Raises:
        OutOfRangeError: If value is negative or needs more than precision digits
    """
    precision = _check_precision(precision)
    if value < 0 or value >= 10**precision:
        raise OutOfRangeError(
            f"Grid value {value} does not fit in {precision} digits"
        )
    return str(value).zfill(precision)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_offset(east_offset: float, north_offset: float, max_offset: float) -> None:
    offset = math.hypot(east_offset, north_offset)
    if offset > max_offset:
        logger.warning(
            f"Grid offset of {offset:.0f} m exceeds {max_offset:.0f} m; "
            f"flat-earth projection error grows with distance from the origin"
        )


def _origin_scale(origin: Position) -> float:
    cos_lat = math.cos(math.radians(origin.latitude))
    if cos_lat < 1e-9:
        raise OutOfRangeError("Grid origin cannot be placed at a pole")
    return cos_lat


def grid_to_position(
    origin: Any,
    origin_reference: Optional[GridReference],
    target_reference: Optional[GridReference],
    precision: Optional[int] = None,
    max_offset: float = MAX_GRID_OFFSET_METERS,
) -> Position:
    """
    Resolve a grid reference into a position.

    Args:
        origin: Position of the grid origin
        origin_reference: Grid reference assigned to the origin
        target_reference: Grid reference to resolve
        precision: Optional explicit precision (3 or 4)
        max_offset: Offset in meters beyond which a warning is logged

    Returns:
        The projected Position

    Raises:
        MissingInputError: If the origin or either reference is missing
        InvalidPrecisionError: If the precision cannot be resolved to 3 or 4
        InvalidFormatError: If any digit string is malformed
        OutOfRangeError: If the result falls outside valid latitudes
    """
    if origin is None:
        raise MissingInputError("Set a grid origin location first.")
    if origin_reference is None:
        raise MissingInputError("Set a grid origin reference first.")
    if target_reference is None:
        raise MissingInputError("Target grid reference is missing.")

    origin_position = coerce_position(origin)
    resolved = resolve_precision(precision, origin_reference, target_reference)

    origin_east = parse_digits(origin_reference.easting, resolved)
    origin_north = parse_digits(origin_reference.northing, resolved)
    target_east = parse_digits(target_reference.easting, resolved)
    target_north = parse_digits(target_reference.northing, resolved)

    unit = unit_meters(resolved)
    east_offset = (target_east - origin_east) * unit
    north_offset = (target_north - origin_north) * unit
    _check_offset(east_offset, north_offset, max_offset)

    cos_lat = _origin_scale(origin_position)
    lat = origin_position.latitude + math.degrees(north_offset / EARTH_RADIUS_METERS)
    lng = origin_position.longitude + math.degrees(
        east_offset / (EARTH_RADIUS_METERS * cos_lat)
    )

    if lat < -90.0 or lat > 90.0:
        raise OutOfRangeError(f"Grid reference {target_reference} lies beyond a pole")
    if lng < -180.0 or lng > 180.0:
        lng = normalize_longitude(lng)

    logger.debug(
        f"Grid {target_reference} resolved to ({lat:.6f}, {lng:.6f}) "
        f"from origin {origin_reference} at precision {resolved}"
    )
    return Position(latitude=lat, longitude=lng)


def position_to_grid_reference(
    origin: Any,
    origin_reference: Optional[GridReference],
    point: Any,
    precision: Optional[int] = None,
    max_offset: float = MAX_GRID_OFFSET_METERS,
) -> GridReference:
    """
    Compute the grid reference of a point relative to the grid origin.

    Args:
        origin: Position of the grid origin
        origin_reference: Grid reference assigned to the origin
        point: Position to convert
        precision: Optional explicit precision (3 or 4)
        max_offset: Offset in meters beyond which a warning is logged

    Returns:
        GridReference with zero-padded digits and the resolved precision

    Raises:
        MissingInputError: If the origin, its reference or the point is missing
        InvalidPrecisionError: If the precision cannot be resolved to 3 or 4
        InvalidFormatError: If the origin reference is malformed
        OutOfRangeError: If the point lies outside the grid's digit range
    """
    if origin is None or origin_reference is None:
        raise MissingInputError("Grid origin must be configured.")
    if point is None:
        raise MissingInputError("Point to convert is missing.")

    origin_position = coerce_position(origin)
    target = coerce_position(point)
    resolved = resolve_precision(precision, origin_reference)
    unit = unit_meters(resolved)

    origin_east = parse_digits(origin_reference.easting, resolved)
    origin_north = parse_digits(origin_reference.northing, resolved)

    cos_lat = _origin_scale(origin_position)
    north_offset = (
        (target.latitude - origin_position.latitude)
        * math.pi
        * EARTH_RADIUS_METERS
        / 180.0
    )
    east_offset = (
        (target.longitude - origin_position.longitude)
        * math.pi
        * EARTH_RADIUS_METERS
        * cos_lat
        / 180.0
    )
    _check_offset(east_offset, north_offset, max_offset)

    east_digits = _round_half_up(origin_east + east_offset / unit)
    north_digits = _round_half_up(origin_north + north_offset / unit)

    return GridReference(
        easting=format_digits(east_digits, resolved),
        northing=format_digits(north_digits, resolved),
        precision=resolved,
    )
