"""Tests for fixed-offset date and time helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from eleganza_booking.calendar.timeutil import (
    add_days,
    build_end_timestamp,
    build_timestamp,
    clock_of,
    date_of,
    date_range,
    day_boundaries,
    day_of_week,
    format_clock,
    format_day_header,
    format_display_date,
    format_display_datetime,
    format_hour_label,
    format_short_datetime,
    hour_decimal,
    local_input_to_timestamp,
    month_boundaries,
    parse_clock,
    parse_date,
    parse_time,
    parse_timestamp,
    range_boundaries,
    time_of,
    timestamp_to_local_input,
    week_boundaries,
    week_start,
)
from eleganza_booking.errors import InvalidDateError


class TestParseDate:
    def test_valid_date(self):
        assert parse_date("2025-03-18") == date(2025, 3, 18)

    def test_date_passes_through(self):
        assert parse_date(date(2025, 3, 18)) == date(2025, 3, 18)

    def test_invalid_month(self):
        with pytest.raises(InvalidDateError):
            parse_date("2025-13-01")

    def test_wrong_format(self):
        with pytest.raises(InvalidDateError):
            parse_date("18/03/2025")

    def test_invalid_date_is_value_error(self):
        with pytest.raises(ValueError):
            parse_date("not-a-date")


class TestParseClock:
    def test_hh_mm(self):
        assert parse_clock("09:30") == 570

    def test_with_seconds(self):
        assert parse_clock("14:30:00") == 870

    def test_midnight_close(self):
        assert parse_clock("24:00") == 1440

    def test_int_passes_through(self):
        assert parse_clock(600) == 600

    def test_int_out_of_range(self):
        with pytest.raises(InvalidDateError):
            parse_clock(1441)

    def test_invalid_hour(self):
        with pytest.raises(InvalidDateError):
            parse_clock("25:00")

    def test_garbage(self):
        with pytest.raises(InvalidDateError):
            parse_time("ten thirty")

    def test_format_clock(self):
        assert format_clock(570) == "09:30"
        assert format_clock(1440) == "24:00"


class TestBuildTimestamp:
    def test_carries_business_offset(self):
        assert build_timestamp("2025-02-14", "14:30") == "2025-02-14T14:30:00-06:00"

    def test_midnight_close_rolls_to_next_day(self):
        assert build_timestamp("2025-02-14", "24:00") == "2025-02-15T00:00:00-06:00"

    def test_end_timestamp_same_day(self):
        assert build_end_timestamp("2025-02-14", "10:00", 90) == "2025-02-14T11:30:00-06:00"

    def test_end_timestamp_rolls_over_midnight(self):
        assert build_end_timestamp("2025-02-14", "23:30", 60) == "2025-02-15T00:30:00-06:00"

    @pytest.mark.parametrize("day,clock", [
        ("2025-01-01", "00:00"),
        ("2025-02-28", "09:30"),
        ("2024-02-29", "13:00"),
        ("2025-12-31", "23:30"),
    ])
    def test_round_trip(self, day, clock):
        ts = build_timestamp(day, clock)
        assert date_of(ts) == day
        assert time_of(ts) == clock


class TestParseTimestamp:
    def test_converts_utc_to_business_time(self):
        parsed = parse_timestamp("2025-02-14T20:30:00Z")
        assert parsed.hour == 14
        assert parsed.utcoffset() == timedelta(hours=-6)

    def test_evening_utc_is_previous_local_day(self):
        assert date_of("2025-02-15T03:00:00Z") == "2025-02-14"

    def test_aware_datetime_accepted(self):
        value = datetime(2025, 2, 14, 20, 30, tzinfo=timezone.utc)
        assert time_of(value) == "14:30"

    def test_naive_timestamp_rejected(self):
        with pytest.raises(InvalidDateError, match="offset"):
            parse_timestamp("2025-02-14T14:30:00")

    def test_malformed_timestamp(self):
        with pytest.raises(InvalidDateError):
            parse_timestamp("yesterday")

    def test_hour_decimal(self):
        assert hour_decimal("2025-02-14T14:30:00-06:00") == 14.5

    def test_clock_of(self):
        assert clock_of("2025-02-14T09:15:00-06:00") == 555


class TestLocalInput:
    def test_to_timestamp(self):
        assert local_input_to_timestamp("2025-02-14T14:30") == "2025-02-14T14:30:00-06:00"

    def test_from_timestamp(self):
        assert timestamp_to_local_input("2025-02-14T20:30:00Z") == "2025-02-14T14:30"

    def test_invalid_input(self):
        with pytest.raises(InvalidDateError):
            local_input_to_timestamp("2025-02-14 14:30")


class TestCalendarArithmetic:
    def test_add_days_across_month(self):
        assert add_days("2025-02-28", 1) == date(2025, 3, 1)

    def test_add_days_leap_year(self):
        assert add_days("2024-02-28", 1) == date(2024, 2, 29)

    def test_add_negative_days(self):
        assert add_days("2025-01-01", -1) == date(2024, 12, 31)

    def test_date_range_across_year(self):
        assert date_range("2025-12-30", 3) == [
            date(2025, 12, 30), date(2025, 12, 31), date(2026, 1, 1),
        ]

    def test_day_of_week_sunday_is_zero(self):
        assert day_of_week("2025-03-16") == 0
        assert day_of_week("2025-03-18") == 2
        assert day_of_week("2025-03-22") == 6

    def test_week_start_is_sunday(self):
        assert week_start("2025-03-18") == date(2025, 3, 16)
        assert week_start("2025-03-16") == date(2025, 3, 16)


class TestBoundaries:
    def test_day(self):
        assert day_boundaries("2025-03-18") == (
            "2025-03-18T00:00:00-06:00", "2025-03-19T00:00:00-06:00",
        )

    def test_week(self):
        bounds = week_boundaries("2025-03-18")
        assert bounds.start == "2025-03-16T00:00:00-06:00"
        assert bounds.end == "2025-03-23T00:00:00-06:00"

    def test_month_december_rolls_year(self):
        bounds = month_boundaries("2025-12-10")
        assert bounds.start == "2025-12-01T00:00:00-06:00"
        assert bounds.end == "2026-01-01T00:00:00-06:00"

    def test_range(self):
        bounds = range_boundaries("2025-03-18", 3)
        assert bounds.start == "2025-03-18T00:00:00-06:00"
        assert bounds.end == "2025-03-21T00:00:00-06:00"


class TestDisplayFormats:
    def test_display_datetime(self):
        assert format_display_datetime("2025-02-14T14:30:00-06:00") == "vie, 14 de feb de 2025, 14:30"

    def test_short_datetime(self):
        assert format_short_datetime("2025-02-14T14:30:00-06:00") == "14 feb, 14:30"

    def test_display_date(self):
        assert format_display_date("2025-02-14T14:30:00-06:00") == "14 de feb de 2025"

    def test_september_abbreviation(self):
        assert format_display_date("2025-09-01T10:00:00-06:00") == "1 de sept de 2025"

    def test_day_header(self):
        assert format_day_header("2025-02-14") == "vie 14"

    def test_hour_labels(self):
        assert format_hour_label(14) == "2 p.\u00a0m."
        assert format_hour_label(0) == "12 a.\u00a0m."
        assert format_hour_label(12) == "12 p.\u00a0m."
        assert format_hour_label(9) == "9 a.\u00a0m."
