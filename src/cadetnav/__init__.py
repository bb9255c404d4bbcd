#!/usr/bin/env python3
"""
cadetnav - Navigation math and route sharing for a cadet map planner.

This package provides great-circle bearing and distance helpers, a local
digit-pair grid reference system, compact share codes for planned routes and
geohash location codes for short callouts.
"""
import importlib.metadata

__version__ = importlib.metadata.version("cadetnav")

# Import main classes for public API
from .errors import (
    CadetNavError,
    DecodeFailureError,
    InvalidArgumentError,
    InvalidFormatError,
    InvalidPrecisionError,
    MissingInputError,
    OutOfRangeError,
    UnsupportedVersionError,
)
from .geometry import Position, normalize_position, validate_position
from .geometry_utils import (
    bearing_between,
    destination_point,
    distance_between,
    relative_bearing,
)
from .grid import (
    GridOrigin,
    GridReference,
    grid_to_position,
    parse_digits,
    position_to_grid_reference,
    unit_meters,
)
from .share import (
    ConnectVia,
    RouteSnapshot,
    build_snapshot,
    decode_share_code,
    encode_share_code,
    normalize_snapshot,
)
from .geohash import decode_location, encode_location
from .route import Marker, RouteState

__all__ = [
    "CadetNavError",
    "DecodeFailureError",
    "InvalidArgumentError",
    "InvalidFormatError",
    "InvalidPrecisionError",
    "MissingInputError",
    "OutOfRangeError",
    "UnsupportedVersionError",
    "Position",
    "normalize_position",
    "validate_position",
    "bearing_between",
    "destination_point",
    "distance_between",
    "relative_bearing",
    "GridOrigin",
    "GridReference",
    "grid_to_position",
    "parse_digits",
    "position_to_grid_reference",
    "unit_meters",
    "ConnectVia",
    "RouteSnapshot",
    "build_snapshot",
    "decode_share_code",
    "encode_share_code",
    "normalize_snapshot",
    "decode_location",
    "encode_location",
    "Marker",
    "RouteState",
]
