#!/usr/bin/env python3
"""
Command-line front end for the cadetnav helpers.

Examples:
    cadetnav bearing 45.0 -75.0 45.01 -74.99
    cadetnav project 45.0 -75.0 90 250
    cadetnav grid-to-latlng --origin 45.0 -75.0 --origin-ref 500 500 --target 501 500
    cadetnav share route.gpx --connect-via route
    cadetnav unshare <code> --gpx shared.gpx
"""

from typing import List, Optional
import argparse
import logging
import sys

from gpxpy import gpx

from . import __version__
from .config import CadetNavConfig
from .errors import CadetNavError
from .geohash import decode_location_bounds, encode_location, location_error_meters
from .geometry import Position, validate_position
from .geometry_utils import (
    bearing_between,
    bearing_in_mils,
    destination_point,
    distance_between,
    format_distance,
    mils_to_degrees,
)
from .grid import GridReference, grid_to_position, position_to_grid_reference
from .route import RouteState
from .share import ConnectVia, decode_share_code, encode_share_code

# Configure logging
logger = logging.getLogger("cadetnav")


def create_argument_parser(
    config: Optional[CadetNavConfig] = None,
) -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Args:
        config: Defaults to use; CadetNavConfig() when omitted

    Returns:
        Configured ArgumentParser instance
    """
    config = config or CadetNavConfig()

    parser = argparse.ArgumentParser(
        description="Navigation math and route sharing tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=config.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=f"Set logging level (default: {config.log_level})",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cadetnav {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    bearing = subparsers.add_parser(
        "bearing", help="Bearing and distance between two positions"
    )
    bearing.add_argument("lat1", type=float)
    bearing.add_argument("lng1", type=float)
    bearing.add_argument("lat2", type=float)
    bearing.add_argument("lng2", type=float)
    bearing.add_argument(
        "--mils", action="store_true", help="Also show the bearing in mils"
    )

    project = subparsers.add_parser(
        "project", help="Project a point along a bearing for a distance"
    )
    project.add_argument("lat", type=float)
    project.add_argument("lng", type=float)
    project.add_argument("bearing", type=float, help="Bearing in degrees (or mils)")
    project.add_argument("distance", type=float, help="Distance in meters")
    project.add_argument(
        "--mils", action="store_true", help="Interpret the bearing as mils"
    )

    for name, help_text in (
        ("grid-to-latlng", "Resolve a grid reference to a position"),
        ("latlng-to-grid", "Compute the grid reference of a position"),
    ):
        grid = subparsers.add_parser(name, help=help_text)
        grid.add_argument(
            "--origin",
            nargs=2,
            type=float,
            metavar=("LAT", "LNG"),
            required=True,
            help="Position of the grid origin",
        )
        grid.add_argument(
            "--origin-ref",
            nargs=2,
            metavar=("EASTING", "NORTHING"),
            required=True,
            help="Grid reference of the origin",
        )
        if name == "grid-to-latlng":
            grid.add_argument(
                "--target",
                nargs=2,
                metavar=("EASTING", "NORTHING"),
                required=True,
                help="Grid reference to resolve",
            )
        else:
            grid.add_argument(
                "--point",
                nargs=2,
                type=float,
                metavar=("LAT", "LNG"),
                required=True,
                help="Position to convert",
            )
        grid.add_argument(
            "--precision",
            type=int,
            default=config.grid_precision,
            choices=[3, 4],
            help=f"Digits per easting/northing (default: {config.grid_precision})",
        )
        grid.add_argument(
            "--max-offset",
            type=float,
            default=config.max_grid_offset,
            help=f"Warn beyond this offset in meters (default: {config.max_grid_offset:.0f})",
        )

    geohash_encode = subparsers.add_parser(
        "geohash-encode", help="Encode a position as a location code"
    )
    geohash_encode.add_argument("lat", type=float)
    geohash_encode.add_argument("lng", type=float)
    geohash_encode.add_argument(
        "--precision",
        type=int,
        default=config.location_precision,
        help=f"Code length, 1-12 (default: {config.location_precision})",
    )

    geohash_decode = subparsers.add_parser(
        "geohash-decode", help="Decode a location code to a position"
    )
    geohash_decode.add_argument("code", type=str)

    share = subparsers.add_parser("share", help="Create a share code from a GPX file")
    share.add_argument("filename", type=str, help="GPX file to share")
    share.add_argument(
        "--connect-via",
        type=str,
        default=None,
        choices=[c.value for c in ConnectVia],
        help="Override the connection mode stored in the GPX file",
    )

    unshare = subparsers.add_parser("unshare", help="Decode a share code")
    unshare.add_argument("code", type=str)
    unshare.add_argument(
        "--gpx",
        type=str,
        default=None,
        help="Write the decoded route to this GPX file",
    )

    return parser


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    level = getattr(logging, args.log_level)

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    # Create console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def format_position(position: Position) -> str:
    return f"{position.latitude:.6f}, {position.longitude:.6f}"


def run_bearing(args: argparse.Namespace) -> None:
    start = validate_position((args.lat1, args.lng1))
    end = validate_position((args.lat2, args.lng2))
    bearing = bearing_between(start, end)
    distance = distance_between(start, end)

    line = f"Bearing: {bearing:.1f}°"
    if args.mils:
        line += f" ({bearing_in_mils(bearing):.0f} mils)"
    print(line)
    print(f"Distance: {format_distance(distance)}")


def run_project(args: argparse.Namespace) -> None:
    origin = validate_position((args.lat, args.lng))
    bearing = mils_to_degrees(args.bearing) if args.mils else args.bearing
    destination = destination_point(origin, bearing, args.distance)
    logger.debug(
        f"Projected {args.distance} m at {bearing:.2f}° from {format_position(origin)}"
    )
    print(format_position(destination))


def run_grid_to_latlng(args: argparse.Namespace) -> None:
    position = grid_to_position(
        validate_position(tuple(args.origin)),
        GridReference(*args.origin_ref, precision=args.precision),
        GridReference(*args.target, precision=args.precision),
        args.precision,
        max_offset=args.max_offset,
    )
    print(format_position(position))


def run_latlng_to_grid(args: argparse.Namespace) -> None:
    reference = position_to_grid_reference(
        validate_position(tuple(args.origin)),
        GridReference(*args.origin_ref, precision=args.precision),
        validate_position(tuple(args.point)),
        args.precision,
        max_offset=args.max_offset,
    )
    print(str(reference))


def run_geohash_encode(args: argparse.Namespace) -> None:
    code = encode_location((args.lat, args.lng), args.precision)
    lat_error, lon_error = location_error_meters(args.precision)
    logger.info(f"Cell half-size about {lat_error:.1f} m x {lon_error:.1f} m")
    print(code)


def run_geohash_decode(args: argparse.Namespace) -> None:
    south, west, north, east = decode_location_bounds(args.code)
    center = Position((south + north) / 2.0, (west + east) / 2.0)
    print(format_position(center))


def run_share(args: argparse.Namespace) -> None:
    state = RouteState.from_file(args.filename)
    if args.connect_via is not None:
        state.connect_via = ConnectVia.coerce(args.connect_via)
    logger.info(
        f"Loaded route with {len(state.path())} points, "
        f"{format_distance(state.total_distance())} total"
    )
    snapshot = state.to_snapshot()
    if snapshot is None:
        raise CadetNavError("Nothing to share: the route has no points")
    print(encode_share_code(snapshot))


def run_unshare(args: argparse.Namespace) -> None:
    snapshot = decode_share_code(args.code)
    if snapshot is None:
        raise CadetNavError("Share code could not be decoded")

    if snapshot.start is not None:
        print(f"Start: {format_position(snapshot.start)}")
    for index, checkpoint in enumerate(snapshot.checkpoints, start=1):
        print(f"Checkpoint {index}: {format_position(checkpoint)}")
    if snapshot.end is not None:
        print(f"End: {format_position(snapshot.end)}")
    print(f"Connect via: {snapshot.connect_via}")

    if args.gpx:
        state = RouteState.from_snapshot(snapshot)
        with open(args.gpx, "w", encoding="utf-8") as f:
            f.write(state.to_gpx(name="Shared route"))
        logger.info(f"Wrote decoded route to {args.gpx}")


COMMANDS = {
    "bearing": run_bearing,
    "project": run_project,
    "grid-to-latlng": run_grid_to_latlng,
    "latlng-to-grid": run_latlng_to_grid,
    "geohash-encode": run_geohash_encode,
    "geohash-decode": run_geohash_decode,
    "share": run_share,
    "unshare": run_unshare,
}


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and runs the requested command.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Setup logging
    setup_logging(args)

    try:
        COMMANDS[args.command](args)
    except CadetNavError as e:
        logger.error(str(e))
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
        sys.exit(1)
    except PermissionError as e:
        logger.error(f"Permission denied: {e.filename}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
