#!/usr/bin/env python3
"""
Route share codes.

A planned route (start, checkpoints, end and connection mode) is packed into
a short URL-safe string. The current format is a fixed big-endian binary
layout:

    byte 0      version (1)
    byte 1      flags (bit 0: has start, bit 1: has end)
    byte 2      connect mode (0: direct, 1: route)
    bytes 3-4   checkpoint count (uint16)
    then 8 bytes per coordinate in the order start, checkpoints, end:
                round(lat * 1e5) and round(lng * 1e5) as signed 32-bit ints

base64url-encoded without padding. Codes issued before the binary format are
standard base64 of a JSON object and are still accepted by the decoder.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
import base64
import binascii
import json
import logging
import math
import struct

from .errors import CadetNavError, InvalidArgumentError, UnsupportedVersionError
from .geometry import Position, normalize_position

logger = logging.getLogger(__name__)

SHARE_VERSION = 1

FLAG_HAS_START = 0x01
FLAG_HAS_END = 0x02

COORDINATE_SCALE = 1e5
MAX_CHECKPOINTS = 0xFFFF

_HEADER = struct.Struct(">BBBH")
_COORDINATE = struct.Struct(">ii")


class ConnectVia(Enum):
    """How consecutive route points are joined when the route is drawn."""

    DIRECT = "direct"
    ROUTE = "route"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: Any) -> "ConnectVia":
        """Clamp any input to a connect mode; unknown values mean DIRECT."""
        if isinstance(value, cls):
            return value
        if value == cls.ROUTE.value:
            return cls.ROUTE
        return cls.DIRECT


@dataclass(frozen=True)
class RouteSnapshot:
    """An immutable, validated view of a route for sharing or importing."""

    version: int = SHARE_VERSION
    connect_via: ConnectVia = ConnectVia.DIRECT
    start: Optional[Position] = None
    end: Optional[Position] = None
    checkpoints: Tuple[Position, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        """True when there is nothing to share."""
        return self.start is None and self.end is None and not self.checkpoints

    def positions(self) -> List[Position]:
        """All positions in wire order: start, checkpoints, end."""
        ordered: List[Position] = []
        if self.start is not None:
            ordered.append(self.start)
        ordered.extend(self.checkpoints)
        if self.end is not None:
            ordered.append(self.end)
        return ordered

    def to_dict(self) -> Dict[str, Any]:
        """The JSON shape used by the legacy share format."""
        return {
            "version": self.version,
            "connectVia": self.connect_via.value,
            "start": self.start.to_dict() if self.start else None,
            "end": self.end.to_dict() if self.end else None,
            "checkpoints": [c.to_dict() for c in self.checkpoints],
        }


def _field(raw: Any, *names: str) -> Any:
    """Read the first present attribute or key out of a mapping or object."""
    for name in names:
        if isinstance(raw, Mapping):
            if name in raw:
                return raw[name]
        elif hasattr(raw, name):
            return getattr(raw, name)
    return None


def normalize_snapshot(raw: Any) -> Optional[RouteSnapshot]:
    """
    Validate loosely-typed snapshot data into a RouteSnapshot.

    Args:
        raw: A mapping in the legacy JSON shape, or a RouteSnapshot

    Returns:
        A RouteSnapshot with rounded positions, or None when raw is not
        snapshot-shaped at all

    Raises:
        UnsupportedVersionError: If raw declares a version other than 1
    """
    if isinstance(raw, RouteSnapshot):
        raw = {
            "version": raw.version,
            "connectVia": raw.connect_via,
            "start": raw.start,
            "end": raw.end,
            "checkpoints": list(raw.checkpoints),
        }
    if not isinstance(raw, Mapping):
        return None

    version = raw.get("version")
    # Non-integer versions are treated as missing
    if not isinstance(version, int) or isinstance(version, bool):
        version = SHARE_VERSION
    if version != SHARE_VERSION:
        raise UnsupportedVersionError(
            f"Unsupported share version {version}; expected {SHARE_VERSION}"
        )

    connect_via = ConnectVia.coerce(_field(raw, "connectVia", "connect_via"))
    start = normalize_position(raw.get("start"))
    end = normalize_position(raw.get("end"))

    raw_checkpoints = raw.get("checkpoints")
    if not isinstance(raw_checkpoints, (list, tuple)):
        raw_checkpoints = []
    checkpoints = tuple(
        position
        for position in (normalize_position(c) for c in raw_checkpoints)
        if position is not None
    )
    dropped = len(raw_checkpoints) - len(checkpoints)
    if dropped:
        logger.warning(f"Dropped {dropped} invalid checkpoint(s) from route snapshot")

    return RouteSnapshot(
        version=version,
        connect_via=connect_via,
        start=start,
        end=end,
        checkpoints=checkpoints,
    )


def build_snapshot(route_state: Any) -> Optional[RouteSnapshot]:
    """
    Build a shareable snapshot from the caller's route state.

    Args:
        route_state: A RouteState, or any mapping/object with start, end,
            checkpoints and connectVia (markers or bare positions)

    Returns:
        The snapshot, or None when there is nothing to share
    """
    if route_state is None:
        return None

    checkpoints = _field(route_state, "checkpoints") or []
    snapshot = normalize_snapshot(
        {
            "version": SHARE_VERSION,
            "connectVia": _field(route_state, "connect_via", "connectVia"),
            "start": _field(route_state, "start"),
            "end": _field(route_state, "end"),
            "checkpoints": list(checkpoints),
        }
    )
    if snapshot is None or snapshot.is_empty():
        return None
    return snapshot


def _scale(value: float) -> int:
    return int(math.floor(value * COORDINATE_SCALE + 0.5))


def encode_share_code(snapshot: Any) -> str:
    """
    Encode a route snapshot as a binary share code.

    Args:
        snapshot: A RouteSnapshot, or raw snapshot data to normalise first

    Returns:
        base64url string without padding

    Raises:
        InvalidArgumentError: If snapshot is not snapshot-shaped or has more
            than 65535 checkpoints
        UnsupportedVersionError: If raw data declares another version
    """
    normalized = normalize_snapshot(snapshot)
    if normalized is None:
        raise InvalidArgumentError("Nothing to encode: not a route snapshot")
    if len(normalized.checkpoints) > MAX_CHECKPOINTS:
        raise InvalidArgumentError(
            f"Too many checkpoints to share ({len(normalized.checkpoints)} > {MAX_CHECKPOINTS})"
        )

    flags = 0
    if normalized.start is not None:
        flags |= FLAG_HAS_START
    if normalized.end is not None:
        flags |= FLAG_HAS_END
    connect = 1 if normalized.connect_via is ConnectVia.ROUTE else 0

    buffer = bytearray(
        _HEADER.pack(SHARE_VERSION, flags, connect, len(normalized.checkpoints))
    )
    for position in normalized.positions():
        buffer += _COORDINATE.pack(_scale(position.latitude), _scale(position.longitude))

    code = base64.urlsafe_b64encode(bytes(buffer)).rstrip(b"=").decode("ascii")
    logger.debug(
        f"Encoded route with {len(normalized.positions())} points into {len(code)} characters"
    )
    return code


def _b64decode(text: str, altchars: Optional[bytes]) -> bytes:
    """Strict base64 decode that tolerates missing padding."""
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded.encode("ascii"), altchars=altchars, validate=True)


def _decode_binary(code: str) -> Optional[RouteSnapshot]:
    if "+" in code or "/" in code:
        return None
    try:
        data = _b64decode(code, altchars=b"-_")
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Share code is not base64url: {e}")
        return None

    if len(data) < _HEADER.size:
        logger.debug("Share code too short for the binary header")
        return None

    version, flags, connect, count = _HEADER.unpack_from(data, 0)
    if version != SHARE_VERSION:
        logger.debug(f"Binary share code has version {version}")
        return None
    if flags & ~(FLAG_HAS_START | FLAG_HAS_END) or connect not in (0, 1):
        logger.debug(f"Binary share code has unknown flags {flags} or mode {connect}")
        return None

    has_start = bool(flags & FLAG_HAS_START)
    has_end = bool(flags & FLAG_HAS_END)
    total = count + int(has_start) + int(has_end)
    expected_length = _HEADER.size + _COORDINATE.size * total
    if len(data) != expected_length:
        logger.debug(
            f"Binary share code is {len(data)} bytes, expected {expected_length}"
        )
        return None

    positions = []
    for offset in range(_HEADER.size, expected_length, _COORDINATE.size):
        lat_e5, lng_e5 = _COORDINATE.unpack_from(data, offset)
        position = normalize_position(
            (lat_e5 / COORDINATE_SCALE, lng_e5 / COORDINATE_SCALE)
        )
        if position is None:
            logger.debug("Binary share code contains an out-of-range coordinate")
            return None
        positions.append(position)

    start = positions.pop(0) if has_start else None
    end = positions.pop() if has_end else None
    return RouteSnapshot(
        version=version,
        connect_via=ConnectVia.ROUTE if connect == 1 else ConnectVia.DIRECT,
        start=start,
        end=end,
        checkpoints=tuple(positions),
    )


def _decode_legacy(code: str) -> Optional[RouteSnapshot]:
    try:
        payload = json.loads(_b64decode(code, altchars=None).decode("utf-8"))
    except (binascii.Error, ValueError, RecursionError) as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors;
        # RecursionError comes from deeply nested arrays or objects
        logger.debug(f"Share code is not legacy base64 JSON: {e}")
        return None
    if not isinstance(payload, dict):
        logger.debug("Legacy share payload is not a JSON object")
        return None
    return normalize_snapshot(payload)


def decode_share_code(code: Any) -> Optional[RouteSnapshot]:
    """
    Decode a share code produced by this or an earlier version of the app.

    Never raises: malformed input of any kind yields None.

    Args:
        code: The share code string

    Returns:
        The decoded RouteSnapshot, or None if the code is not valid
    """
    if not isinstance(code, str):
        return None
    trimmed = code.strip()
    if not trimmed:
        return None

    try:
        snapshot = _decode_binary(trimmed)
        if snapshot is not None:
            return snapshot
        return _decode_legacy(trimmed)
    except CadetNavError as e:
        logger.debug(f"Rejected share code: {e}")
        return None
