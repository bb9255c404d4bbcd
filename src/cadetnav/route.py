#!/usr/bin/env python3
"""
Caller-owned route state and route geometry helpers.

RouteState holds the markers a user has placed (start, end and ordered
checkpoints) and the connection mode. It is a plain object owned by the
caller; the share, grid and bearing helpers only ever read from it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TextIO
import logging
import uuid

import gpxpy
import gpxpy.gpx
from shapely.errors import ShapelyError
from shapely.geometry import LineString, shape

from .geometry import Position, normalize_position, validate_position
from .geometry_utils import distance_between
from .share import ConnectVia, RouteSnapshot, build_snapshot

logger = logging.getLogger(__name__)

START_ID = "start"
END_ID = "end"

START_NAME = "Start"
END_NAME = "End"


def _new_checkpoint_id() -> str:
    return f"checkpoint-{uuid.uuid4().hex[:7]}"


def _is_marker_name(name: str) -> bool:
    """True for GPX point names written by RouteState.to_gpx."""
    return name in ("start", "end") or name.startswith("checkpoint")


@dataclass
class Marker:
    """A placed point on the map."""

    id: str
    position: Position


@dataclass
class RouteState:
    """The user's planned route: start, end, checkpoints and connection mode."""

    start: Optional[Marker] = None
    end: Optional[Marker] = None
    checkpoints: List[Marker] = field(default_factory=list)
    connect_via: ConnectVia = ConnectVia.DIRECT
    selected_id: Optional[str] = None

    def set_start(self, position: Any) -> Marker:
        """Place (or move) the start marker and select it."""
        self.start = Marker(START_ID, validate_position(position))
        self.selected_id = START_ID
        return self.start

    def set_end(self, position: Any) -> Marker:
        """Place (or move) the end marker and select it."""
        self.end = Marker(END_ID, validate_position(position))
        self.selected_id = END_ID
        return self.end

    def add_checkpoint(self, position: Any) -> Marker:
        """Append a checkpoint with a freshly generated id."""
        marker = Marker(_new_checkpoint_id(), validate_position(position))
        self.checkpoints.append(marker)
        return marker

    def update_checkpoint(self, checkpoint_id: str, position: Any) -> None:
        """
        Move an existing checkpoint.

        Raises:
            KeyError: If no checkpoint has the given id
        """
        validated = validate_position(position)
        for marker in self.checkpoints:
            if marker.id == checkpoint_id:
                marker.position = validated
                return
        raise KeyError(checkpoint_id)

    def remove_checkpoint(self, checkpoint_id: str) -> None:
        """Remove a checkpoint; clears the selection if it pointed at it."""
        self.checkpoints = [c for c in self.checkpoints if c.id != checkpoint_id]
        if self.selected_id == checkpoint_id:
            self.selected_id = None

    def select(self, marker_id: Optional[str]) -> None:
        self.selected_id = marker_id

    def toggle_connect_mode(self) -> ConnectVia:
        """Switch between direct and routed connections."""
        self.connect_via = (
            ConnectVia.ROUTE
            if self.connect_via is ConnectVia.DIRECT
            else ConnectVia.DIRECT
        )
        return self.connect_via

    def clear(self) -> None:
        """Remove every marker and reset the connection mode."""
        self.start = None
        self.end = None
        self.checkpoints = []
        self.connect_via = ConnectVia.DIRECT
        self.selected_id = None

    def path(self) -> List[Position]:
        """Positions in travel order: start, checkpoints, end."""
        markers = [self.start, *self.checkpoints, self.end]
        return [m.position for m in markers if m is not None]

    def total_distance(self) -> float:
        """Great-circle length of the path in meters."""
        positions = self.path()
        return sum(
            distance_between(a, b) for a, b in zip(positions, positions[1:])
        )

    def to_snapshot(self) -> Optional[RouteSnapshot]:
        """Snapshot for sharing, or None when nothing has been placed."""
        return build_snapshot(self)

    def apply_snapshot(self, snapshot: RouteSnapshot) -> None:
        """Replace all markers with the contents of a decoded snapshot."""
        self.start = Marker(START_ID, snapshot.start) if snapshot.start else None
        self.end = Marker(END_ID, snapshot.end) if snapshot.end else None
        self.checkpoints = [
            Marker(_new_checkpoint_id(), position) for position in snapshot.checkpoints
        ]
        self.connect_via = snapshot.connect_via
        self.selected_id = None
        logger.debug(
            f"Applied snapshot with {len(self.checkpoints)} checkpoints "
            f"({self.connect_via})"
        )

    @classmethod
    def from_snapshot(cls, snapshot: RouteSnapshot) -> "RouteState":
        state = cls()
        state.apply_snapshot(snapshot)
        return state

    @classmethod
    def from_gpx(cls, file_input: TextIO) -> "RouteState":
        """
        Build route state from GPX data.

        The first route is used if present, otherwise all track points,
        otherwise the waypoints. When the points carry the names written by
        to_gpx ("Start", "End", "Checkpoint ...") they are placed by name;
        otherwise the first and last points become the start and end.

        Args:
            file_input: File-like object containing GPX data

        Returns:
            RouteState built from the GPX points

        Raises:
            gpxpy.gpx.GPXException: If GPX data is malformed
            ValueError: If the GPX data contains no points
        """
        gpx_data = gpxpy.parse(file_input)

        connect_via = ConnectVia.DIRECT
        if gpx_data.routes:
            route = gpx_data.routes[0]
            points = list(route.points)
            connect_via = ConnectVia.coerce(getattr(route, "type", None))
        else:
            points = [
                point
                for track in gpx_data.tracks
                for segment in track.segments
                for point in segment.points
            ]
            if not points:
                points = list(gpx_data.waypoints)

        if not points:
            raise ValueError("GPX data contains no route, track or waypoint points")

        named = [((getattr(p, "name", None) or "").strip().lower(), p) for p in points]
        state = cls(connect_via=connect_via)
        if any(_is_marker_name(name) for name, _ in named):
            for name, point in named:
                position = (point.latitude, point.longitude)
                if name == "start":
                    state.set_start(position)
                elif name == "end":
                    state.set_end(position)
                else:
                    state.add_checkpoint(position)
        else:
            state.set_start((points[0].latitude, points[0].longitude))
            if len(points) > 1:
                for point in points[1:-1]:
                    state.add_checkpoint((point.latitude, point.longitude))
                state.set_end((points[-1].latitude, points[-1].longitude))
        state.selected_id = None

        logger.debug(f"Parsed {len(points)} points from GPX data")
        return state

    @classmethod
    def from_file(cls, filename: str) -> "RouteState":
        """
        Load route state from a GPX file.

        Raises:
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        logger.debug(f"Reading GPX file: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            return cls.from_gpx(f)

    def to_gpx(self, name: Optional[str] = None) -> str:
        """Serialise the route as a GPX document with a single <rte>."""
        gpx_data = gpxpy.gpx.GPX()
        route = gpxpy.gpx.GPXRoute(name=name)
        route.type = self.connect_via.value

        if self.start is not None:
            route.points.append(self._route_point(self.start.position, START_NAME))
        for index, marker in enumerate(self.checkpoints, start=1):
            route.points.append(self._route_point(marker.position, f"Checkpoint {index}"))
        if self.end is not None:
            route.points.append(self._route_point(self.end.position, END_NAME))

        gpx_data.routes.append(route)
        return gpx_data.to_xml()

    @staticmethod
    def _route_point(position: Position, name: str) -> gpxpy.gpx.GPXRoutePoint:
        return gpxpy.gpx.GPXRoutePoint(
            latitude=position.latitude, longitude=position.longitude, name=name
        )


def _line_string_positions(geometry: Any) -> List[Position]:
    try:
        line = shape(geometry)
    except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as e:
        logger.debug(f"Could not read LineString geometry: {e}")
        return []
    if not isinstance(line, LineString):
        return []
    # GeoJSON coordinates are (lng, lat[, elevation])
    positions = [normalize_position((c[1], c[0])) for c in line.coords]
    valid = [p for p in positions if p is not None]
    if len(valid) != len(positions):
        logger.warning(
            f"Dropped {len(positions) - len(valid)} invalid coordinate(s) from LineString"
        )
    return valid


def _is_line_string(geometry: Any) -> bool:
    return isinstance(geometry, dict) and geometry.get("type") == "LineString"


def parse_line_string(geojson: Any) -> List[Position]:
    """
    Extract the positions of a GeoJSON LineString.

    Accepts a FeatureCollection (the first LineString feature is used), a
    Feature, or a bare LineString geometry. Coordinates outside the valid
    latitude/longitude ranges are dropped. A LineString needs at least two
    positions, so a single-coordinate one yields an empty list.

    Returns:
        List of positions, empty if no LineString is found
    """
    if not isinstance(geojson, dict):
        return []

    kind = geojson.get("type")
    if kind == "FeatureCollection":
        for feature in geojson.get("features") or []:
            if isinstance(feature, dict) and _is_line_string(feature.get("geometry")):
                return _line_string_positions(feature["geometry"])
        return []
    if kind == "Feature":
        geometry = geojson.get("geometry")
        if _is_line_string(geometry):
            return _line_string_positions(geometry)
        return []
    if kind == "LineString":
        return _line_string_positions(geojson)
    return []


def build_routing_payload(points: List[Any]) -> Optional[Dict[str, List[List[float]]]]:
    """
    Build the request body for a routing service.

    Args:
        points: Positions in travel order

    Returns:
        {"coordinates": [[lng, lat], ...]}, or None for fewer than two points
    """
    if not isinstance(points, (list, tuple)) or len(points) < 2:
        return None
    positions = [validate_position(p) for p in points]
    return {"coordinates": [[p.longitude, p.latitude] for p in positions]}
