"""Tests for the unit/text parser."""

from __future__ import annotations

import math

import pytest

from aerogen.units import (
    coerce_angle,
    coerce_length,
    coerce_number,
    extract_angle,
    extract_length,
    parse_angle,
    parse_length,
    to_meters,
)


class TestParseLength:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("a 12 m fuselage", 12.0),
            ("vertical stabilizer 6 meters", 6.0),
            ("wing spanning 30 ft", 9.144),
            ("250 mm chord", 0.25),
            ("fuselage of 850cm", 8.5),
            ("a 5 in fin", 0.127),
            ("span 20' please", 6.096),
            ("2.5 metres long", 2.5),
        ],
    )
    def test_units_convert_to_meters(self, text: str, expected: float) -> None:
        assert parse_length(text) == pytest.approx(expected)

    def test_first_match_wins(self) -> None:
        assert parse_length("12 m body with a 3 m tail") == pytest.approx(12.0)

    def test_no_unit_returns_none(self) -> None:
        assert parse_length("a big delta wing") is None
        assert parse_length("span 12") is None

    def test_alphabetic_unit_needs_word_end(self) -> None:
        """"12 miles" is not 12 meters."""
        assert parse_length("12 miles") is None

    def test_millimeters_not_read_as_meters(self) -> None:
        assert extract_length("400mm") == (400.0, "mm")

    def test_unit_case_insensitive(self) -> None:
        assert parse_length("10 FT") == pytest.approx(3.048)

    def test_empty_text(self) -> None:
        assert parse_length("") is None


class TestParseAngle:
    def test_degrees(self) -> None:
        assert parse_angle("swept 25 deg") == pytest.approx(25.0)
        assert parse_angle("35° sweep") == pytest.approx(35.0)
        assert parse_angle("sweep of 40 degrees") == pytest.approx(40.0)

    def test_radians(self) -> None:
        assert parse_angle("0.5 rad") == pytest.approx(math.degrees(0.5))

    def test_lengths_are_not_angles(self) -> None:
        assert parse_angle("a 12 m fuselage") is None

    def test_extract_angle_keeps_unit(self) -> None:
        assert extract_angle("30 Degrees") == (30.0, "degrees")


class TestConversions:
    def test_to_meters(self) -> None:
        assert to_meters(1.0, "ft") == pytest.approx(0.3048)

    def test_unknown_unit_raises(self) -> None:
        with pytest.raises(KeyError):
            to_meters(1.0, "furlong")


class TestCoerce:
    @pytest.mark.parametrize("value", [None, True, False, "abc", "", [1], {"v": 1}])
    def test_non_numeric_is_none(self, value: object) -> None:
        assert coerce_number(value) is None

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "nan", "-inf"])
    def test_non_finite_is_none(self, value: object) -> None:
        assert coerce_number(value) is None

    def test_numbers_and_numeric_strings(self) -> None:
        assert coerce_number(3) == 3.0
        assert coerce_number(2.5) == 2.5
        assert coerce_number(" 7.25 ") == 7.25

    def test_length_with_unit(self) -> None:
        assert coerce_length("30 ft") == pytest.approx(9.144)
        assert coerce_length(12) == 12.0
        assert coerce_length("wide") is None

    def test_angle_with_unit(self) -> None:
        assert coerce_angle("25 deg") == pytest.approx(25.0)
        assert coerce_angle(0) == 0.0
