"""Tests for course/facility lookups and letter date formatting."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from services.catalog import (
    MISSISSAUGA_ADDRESS,
    DateFormatError,
    find_location,
    format_duration,
    format_letter_date,
    format_long_date,
    is_fixed_duration_course,
    map_course,
    parse_created_at,
    valid_locations,
)


class TestMapCourse:
    @pytest.mark.parametrize(
        ("course_id", "expected"),
        [
            ("AFK-Spring-2024", "Assessment of Fundamental Knowledge Course"),
            ("acj_fall", "Assessment of Clinical Judgment Course"),
            ("INBDE", "Integrated National Board Dental Examination Course"),
            ("BRD-OSCE", "Virtual OSCE"),
            ("B9-SitPractice-2024", "NDECC® Situational Practice Course"),
            ("SimPack-2024", "NDECC® Simulation Package Course"),
            ("Situational-2024", "NDECC® Situational Judgment Course"),
            ("Sim-Weekend", "NDECC® Simulation Situational Course"),
            ("Clinical-Skills", "NDECC® Clinical Skills Course"),
            ("B9-2024", "NDECC® Clinical Skills Course"),
        ],
    )
    def test_known_codes(self, course_id: str, expected: str) -> None:
        assert map_course(course_id) == expected

    @pytest.mark.parametrize("course_id", [None, "", "MYSTERY-101"])
    def test_unknown_codes(self, course_id: str | None) -> None:
        assert map_course(course_id) is None

    def test_fixed_duration_detection_is_case_insensitive(self) -> None:
        assert is_fixed_duration_course("B9-SITPRACTICE-2024") is True
        assert is_fixed_duration_course("Situational-2024") is False
        assert is_fixed_duration_course(None) is False


class TestFindLocation:
    def test_exact_match(self) -> None:
        assert find_location("Mississauga") == MISSISSAUGA_ADDRESS
        assert find_location("Online") == MISSISSAUGA_ADDRESS
        assert find_location("Calgary") == "518 9 Ave SE, Calgary, AB T2G 0S1"

    @pytest.mark.parametrize("location", ["vancouver", "Toronto", "", None])
    def test_no_match(self, location: str | None) -> None:
        assert find_location(location) is None

    def test_valid_locations(self) -> None:
        assert valid_locations() == [
            "Mississauga",
            "B9",
            "Online",
            "Vancouver",
            "Montreal",
            "Calgary",
        ]


class TestDateFormatting:
    def test_date_only_string_is_not_shifted(self) -> None:
        assert format_long_date("2022-10-01", timezone="America/Toronto") == (
            "October 01, 2022"
        )

    def test_datetime_is_converted_to_timezone(self) -> None:
        assert (
            format_long_date("2024-03-15T03:00:00Z", timezone="America/Toronto")
            == "March 14, 2024"
        )

    def test_epoch_milliseconds(self) -> None:
        assert format_long_date(1704067200000) == "January 01, 2024"
        assert format_long_date("1704067200000") == "January 01, 2024"
        assert (
            format_long_date(1704067200000, timezone="America/Toronto")
            == "December 31, 2023"
        )

    @pytest.mark.parametrize("value", [None, "", "2024-13-45", "soon", "not-a-date"])
    def test_invalid_values(self, value: object) -> None:
        with pytest.raises(DateFormatError):
            format_long_date(value)

    def test_duration(self) -> None:
        assert format_duration("2024-01-08", "2024-03-29") == (
            "January 08, 2024 to March 29, 2024"
        )

    def test_letter_date_has_no_day_padding(self) -> None:
        assert format_letter_date(date(2022, 10, 1)) == "October 1, 2022"


class TestParseCreatedAt:
    def test_iso_timestamp(self) -> None:
        assert parse_created_at("2024-05-01T12:30:00.123Z") == datetime(
            2024, 5, 1, 12, 30, 0, 123000, tzinfo=UTC
        )

    def test_naive_timestamp_is_utc(self) -> None:
        assert parse_created_at("2024-05-01T12:30:00").tzinfo is UTC

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_missing_or_malformed_sorts_as_oldest(self, value: object) -> None:
        assert parse_created_at(value) == datetime(1970, 1, 1, tzinfo=UTC)
