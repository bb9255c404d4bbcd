import math

import pytest

from cadetnav.errors import InvalidArgumentError, MissingInputError
from cadetnav.geometry import EARTH_RADIUS_METERS, Position
from cadetnav.geometry_utils import (
    bearing_between,
    bearing_in_mils,
    degrees_to_mils,
    destination_point,
    distance_between,
    format_distance,
    mils_to_degrees,
    relative_bearing,
)

ONE_DEGREE_METERS = EARTH_RADIUS_METERS * math.pi / 180.0


# Tests for bearing_between
@pytest.mark.parametrize(
    "end, expected",
    [
        (Position(1.0, 0.0), 0.0),
        (Position(0.0, 1.0), 90.0),
        (Position(-1.0, 0.0), 180.0),
        (Position(0.0, -1.0), 270.0),
    ],
)
def test_bearing_cardinal_directions(end, expected):
    assert bearing_between(Position(0.0, 0.0), end) == pytest.approx(expected)


def test_bearing_accepts_mappings():
    assert bearing_between({"lat": 0, "lng": 0}, {"lat": 0, "lng": 1}) == pytest.approx(90.0)


def test_bearing_missing_input():
    with pytest.raises(MissingInputError):
        bearing_between(None, Position(0.0, 0.0))
    with pytest.raises(MissingInputError):
        bearing_between(Position(0.0, 0.0), None)


def test_bearing_across_antimeridian():
    # Short hop east across 180 degrees
    assert bearing_between(Position(0.0, 179.5), Position(0.0, -179.5)) == pytest.approx(90.0)


# Tests for distance_between
def test_distance_known_values():
    paris = Position(latitude=48.8566, longitude=2.3522)
    london = Position(latitude=51.5074, longitude=-0.1278)
    assert distance_between(paris, london) == pytest.approx(343_500, abs=1000)


def test_distance_zero_and_symmetric():
    a = Position(40.7128, -74.0060)
    b = Position(34.0522, -118.2437)
    assert distance_between(a, a) == 0.0
    assert distance_between(a, b) == pytest.approx(distance_between(b, a))


def test_distance_one_degree_along_equator():
    assert distance_between(Position(0.0, 0.0), Position(0.0, 1.0)) == pytest.approx(
        ONE_DEGREE_METERS
    )


def test_distance_antipodal():
    assert distance_between(Position(0.0, 0.0), Position(0.0, 180.0)) == pytest.approx(
        math.pi * EARTH_RADIUS_METERS
    )


def test_distance_missing_input():
    with pytest.raises(MissingInputError):
        distance_between(Position(0.0, 0.0), None)


# Tests for destination_point
class TestDestinationPoint:
    def test_one_degree_east_along_equator(self):
        dest = destination_point(Position(0.0, 0.0), 90.0, ONE_DEGREE_METERS)
        assert dest.latitude == pytest.approx(0.0, abs=1e-9)
        assert dest.longitude == pytest.approx(1.0)

    def test_one_degree_north(self):
        dest = destination_point(Position(10.0, 20.0), 0.0, ONE_DEGREE_METERS)
        assert dest.latitude == pytest.approx(11.0)
        assert dest.longitude == pytest.approx(20.0)

    def test_zero_distance_returns_origin(self):
        dest = destination_point(Position(45.0, -75.0), 123.0, 0.0)
        assert dest.latitude == pytest.approx(45.0)
        assert dest.longitude == pytest.approx(-75.0)

    def test_bearing_is_reduced_mod_360(self):
        a = destination_point(Position(45.0, -75.0), 450.0, 1000.0)
        b = destination_point(Position(45.0, -75.0), 90.0, 1000.0)
        assert a.latitude == pytest.approx(b.latitude)
        assert a.longitude == pytest.approx(b.longitude)

    def test_negative_bearing(self):
        a = destination_point(Position(45.0, -75.0), -90.0, 1000.0)
        b = destination_point(Position(45.0, -75.0), 270.0, 1000.0)
        assert a.longitude == pytest.approx(b.longitude)

    def test_longitude_wraps_across_antimeridian(self):
        dest = destination_point(Position(0.0, 179.5), 90.0, ONE_DEGREE_METERS)
        assert dest.longitude == pytest.approx(-179.5)

    def test_round_trip_with_bearing_and_distance(self):
        origin = Position(45.0, -75.0)
        dest = destination_point(origin, 37.5, 2500.0)
        assert bearing_between(origin, dest) == pytest.approx(37.5)
        assert distance_between(origin, dest) == pytest.approx(2500.0)

    def test_missing_origin(self):
        with pytest.raises(MissingInputError):
            destination_point(None, 90.0, 100.0)

    @pytest.mark.parametrize("distance", [-1.0, math.nan, math.inf, None, "100"])
    def test_invalid_distance(self, distance):
        with pytest.raises(InvalidArgumentError):
            destination_point(Position(0.0, 0.0), 90.0, distance)

    @pytest.mark.parametrize("bearing", [math.nan, math.inf, None, "east", True])
    def test_invalid_bearing(self, bearing):
        with pytest.raises(InvalidArgumentError):
            destination_point(Position(0.0, 0.0), bearing, 100.0)


# Tests for relative_bearing
@pytest.mark.parametrize(
    "heading, target, expected",
    [(0.0, 90.0, 90.0), (90.0, 0.0, 270.0), (350.0, 10.0, 20.0), (45.0, 45.0, 0.0)],
)
def test_relative_bearing(heading, target, expected):
    assert relative_bearing(heading, target) == pytest.approx(expected)


def test_relative_bearing_absent():
    assert relative_bearing(None, 90.0) is None
    assert relative_bearing(90.0, None) is None


# Tests for mils and formatting
def test_mils_conversion():
    assert mils_to_degrees(1600) == pytest.approx(90.0)
    assert degrees_to_mils(180.0) == pytest.approx(3200.0)
    assert mils_to_degrees(degrees_to_mils(123.4)) == pytest.approx(123.4)


def test_bearing_in_mils_wraps():
    assert bearing_in_mils(360.0) == pytest.approx(0.0)
    assert bearing_in_mils(-90.0) == pytest.approx(4800.0)


@pytest.mark.parametrize(
    "meters, expected",
    [(None, "N/A"), (0.0, "0 m"), (850.4, "850 m"), (1000.0, "1.00 km"), (1250.0, "1.25 km")],
)
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected
