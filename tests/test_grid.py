import logging

import pytest

from cadetnav.errors import (
    InvalidFormatError,
    InvalidPrecisionError,
    MissingInputError,
    OutOfRangeError,
)
from cadetnav.geometry import Position
from cadetnav.geometry_utils import bearing_between, distance_between
from cadetnav.grid import (
    GridOrigin,
    GridReference,
    clamp_precision,
    format_digits,
    grid_to_position,
    parse_digits,
    position_to_grid_reference,
    resolve_precision,
    unit_meters,
)

ORIGIN = Position(latitude=45.0, longitude=-75.0)
ORIGIN_REF = GridReference(easting="500", northing="500", precision=3)


class TestPrecision:
    def test_unit_meters(self):
        assert unit_meters(3) == 100
        assert unit_meters(4) == 10

    @pytest.mark.parametrize("precision", [2, 5, 0, "3", 3.0, True, None])
    def test_unit_meters_rejects_other_precisions(self, precision):
        with pytest.raises(InvalidPrecisionError):
            unit_meters(precision)

    def test_resolution_order(self):
        four = GridReference("5000", "5000", 4)
        untagged = GridReference("500", "500")
        assert resolve_precision(3, four) == 3
        assert resolve_precision(None, four) == 4
        assert resolve_precision(None, untagged, four) == 4
        assert resolve_precision(None, untagged) == 3
        assert resolve_precision() == 3

    def test_resolution_rejects_stored_precision(self):
        with pytest.raises(InvalidPrecisionError):
            resolve_precision(None, GridReference("500", "500", 6))
        with pytest.raises(InvalidPrecisionError):
            resolve_precision(5)

    def test_clamp_precision(self):
        assert clamp_precision(4) == 4
        assert clamp_precision(3) == 3
        assert clamp_precision(7) == 3
        assert clamp_precision(None) == 3


class TestParseDigits:
    def test_valid_digits(self):
        assert parse_digits("123", 3) == 123
        assert parse_digits("007", 3) == 7
        assert parse_digits("0420", 4) == 420
        assert parse_digits(" 501 ", 3) == 501

    def test_wrong_length(self):
        with pytest.raises(InvalidFormatError):
            parse_digits("12", 3)
        with pytest.raises(InvalidFormatError):
            parse_digits("1234", 3)

    def test_non_digit_characters(self):
        with pytest.raises(InvalidFormatError):
            parse_digits("12a", 3)
        with pytest.raises(InvalidFormatError):
            parse_digits("-12", 3)
        with pytest.raises(InvalidFormatError):
            parse_digits("1²3", 3)

    def test_missing(self):
        with pytest.raises(MissingInputError):
            parse_digits(None, 3)
        with pytest.raises(MissingInputError):
            parse_digits("   ", 3)

    def test_bad_precision(self):
        with pytest.raises(InvalidPrecisionError):
            parse_digits("12345", 5)


class TestFormatDigits:
    def test_zero_padding(self):
        assert format_digits(7, 3) == "007"
        assert format_digits(42, 4) == "0042"
        assert format_digits(999, 3) == "999"

    @pytest.mark.parametrize("value", [-1, 1000])
    def test_out_of_range(self, value):
        with pytest.raises(OutOfRangeError):
            format_digits(value, 3)


class TestGridToPosition:
    def test_one_unit_east_is_100_meters(self):
        target = GridReference("501", "500")
        point = grid_to_position(ORIGIN, ORIGIN_REF, target, 3)
        assert point.latitude == pytest.approx(45.0)
        assert point.longitude > ORIGIN.longitude
        assert distance_between(ORIGIN, point) == pytest.approx(100.0, abs=0.01)
        assert bearing_between(ORIGIN, point) == pytest.approx(90.0, abs=0.01)

    def test_one_unit_north_at_four_figures_is_10_meters(self):
        origin_ref = GridReference("5000", "5000", 4)
        point = grid_to_position(ORIGIN, origin_ref, GridReference("5000", "5001"))
        assert point.longitude == pytest.approx(-75.0)
        assert distance_between(ORIGIN, point) == pytest.approx(10.0, abs=0.001)
        assert bearing_between(ORIGIN, point) == pytest.approx(0.0, abs=1e-6)

    def test_origin_reference_resolves_to_origin(self):
        point = grid_to_position(ORIGIN, ORIGIN_REF, GridReference("500", "500"))
        assert point == ORIGIN

    def test_south_west_offsets(self):
        point = grid_to_position(ORIGIN, ORIGIN_REF, GridReference("497", "496"))
        assert point.latitude < ORIGIN.latitude
        assert point.longitude < ORIGIN.longitude
        assert distance_between(ORIGIN, point) == pytest.approx(500.0, abs=0.5)

    def test_precision_mismatch_is_a_format_error(self):
        with pytest.raises(InvalidFormatError):
            grid_to_position(ORIGIN, ORIGIN_REF, GridReference("5010", "5000"))

    def test_missing_inputs(self):
        target = GridReference("501", "500")
        with pytest.raises(MissingInputError):
            grid_to_position(None, ORIGIN_REF, target)
        with pytest.raises(MissingInputError):
            grid_to_position(ORIGIN, None, target)
        with pytest.raises(MissingInputError):
            grid_to_position(ORIGIN, ORIGIN_REF, None)

    def test_pole_origin_is_rejected(self):
        with pytest.raises(OutOfRangeError):
            grid_to_position(Position(90.0, 0.0), ORIGIN_REF, GridReference("501", "500"))

    def test_large_offset_logs_warning(self, caplog):
        origin_ref = GridReference("000", "000", 3)
        with caplog.at_level(logging.WARNING, logger="cadetnav.grid"):
            point = grid_to_position(ORIGIN, origin_ref, GridReference("999", "999"))
        assert point.latitude > ORIGIN.latitude
        assert any("exceeds" in record.message for record in caplog.records)

    def test_small_offset_does_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="cadetnav.grid"):
            grid_to_position(ORIGIN, ORIGIN_REF, GridReference("520", "480"))
        assert not caplog.records


class TestPositionToGridReference:
    def test_point_100_meters_east(self):
        point = grid_to_position(ORIGIN, ORIGIN_REF, GridReference("501", "500"))
        reference = position_to_grid_reference(ORIGIN, ORIGIN_REF, point)
        assert reference == GridReference("501", "500", 3)

    def test_rounds_to_nearest_unit(self):
        # 140 m north rounds to one unit, 160 m to two
        near = Position(45.0 + 140 / 111194.93, -75.0)
        far = Position(45.0 + 160 / 111194.93, -75.0)
        assert position_to_grid_reference(ORIGIN, ORIGIN_REF, near).northing == "501"
        assert position_to_grid_reference(ORIGIN, ORIGIN_REF, far).northing == "502"

    def test_zero_padded_output(self):
        origin_ref = GridReference("005", "010", 3)
        point = grid_to_position(ORIGIN, origin_ref, GridReference("007", "009"))
        reference = position_to_grid_reference(ORIGIN, origin_ref, point)
        assert reference.easting == "007"
        assert reference.northing == "009"

    def test_explicit_precision_overrides_reference(self):
        origin_ref = GridReference("5000", "5000", 3)
        point = grid_to_position(ORIGIN, origin_ref, GridReference("5003", "5000"), 4)
        reference = position_to_grid_reference(ORIGIN, origin_ref, point, 4)
        assert reference == GridReference("5003", "5000", 4)

    def test_point_outside_digit_range(self):
        origin_ref = GridReference("000", "000", 3)
        west = Position(45.0, -75.01)
        with pytest.raises(OutOfRangeError):
            position_to_grid_reference(ORIGIN, origin_ref, west)

    def test_missing_inputs(self):
        with pytest.raises(MissingInputError):
            position_to_grid_reference(None, ORIGIN_REF, ORIGIN)
        with pytest.raises(MissingInputError):
            position_to_grid_reference(ORIGIN, None, ORIGIN)
        with pytest.raises(MissingInputError):
            position_to_grid_reference(ORIGIN, ORIGIN_REF, None)


class TestGridOrigin:
    def test_round_trip_through_origin(self):
        grid_origin = GridOrigin(ORIGIN, ORIGIN_REF)
        target = GridReference("512", "487", 3)
        point = grid_origin.to_position(target)
        assert grid_origin.reference_for(point) == target

    def test_with_precision_clamps(self):
        grid_origin = GridOrigin(ORIGIN, GridReference("5000", "5000"))
        assert grid_origin.with_precision(4).reference.precision == 4
        assert grid_origin.with_precision(9).reference.precision == 3
        # with_precision returns a copy
        assert grid_origin.reference.precision is None

    def test_reference_str(self):
        assert str(GridReference("012", "345", 3)) == "012 345"
