"""Tests for reset_time module."""

from datetime import datetime, timedelta, timezone

import pytest

from minimax_meter.reset_time import (
    FOUR_HOUR_RESET_HOURS_UTC,
    RESET_HOURS_UTC,
    format_countdown,
    format_duration,
    next_reset,
    seconds_until_reset,
)


def utc(hour, minute=0, second=0, day=15):
    return datetime(2025, 3, day, hour, minute, second, tzinfo=timezone.utc)


class TestNextReset:

    def test_next_boundary_same_day(self):
        assert next_reset(utc(13, 7)) == utc(15)

    def test_exactly_on_boundary_moves_to_next(self):
        assert next_reset(utc(15, 0, 0)) == utc(20)

    def test_after_last_boundary_wraps_to_tomorrow(self):
        assert next_reset(utc(21, 30)) == utc(0, day=16)

    def test_before_first_boundary(self):
        assert next_reset(utc(0, 10)) == utc(5)

    def test_four_hour_cadence(self):
        assert next_reset(utc(13, 7), FOUR_HOUR_RESET_HOURS_UTC) == utc(16)
        assert next_reset(utc(20, 1), FOUR_HOUR_RESET_HOURS_UTC) == utc(0, day=16)

    def test_naive_datetime_treated_as_utc(self):
        assert next_reset(datetime(2025, 3, 15, 13, 7)) == utc(15)

    def test_other_timezone_converted(self):
        # 14:07 at UTC+1 is 13:07 UTC
        cet = timezone(timedelta(hours=1))
        now = datetime(2025, 3, 15, 14, 7, tzinfo=cet)
        assert next_reset(now) == utc(15)

    def test_default_cadence_is_five_hours(self):
        assert RESET_HOURS_UTC == (0, 5, 10, 15, 20)


class TestSecondsUntilReset:

    def test_countdown(self):
        assert seconds_until_reset(utc(13, 7, 0)) == 113 * 60

    def test_wraps_past_midnight(self):
        assert seconds_until_reset(utc(23, 59, 30)) == 30


class TestFormatDuration:

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"),
        (59, "59s"),
        (60, "1m 0s"),
        (250, "4m 10s"),
        (3600, "1h 0m"),
        (6780, "1h 53m"),
        (18000, "5h 0m"),
    ])
    def test_formats(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_negative_is_zero(self):
        assert format_duration(-5) == "0s"


class TestFormatCountdown:

    def test_1307_to_1500(self):
        assert format_countdown(utc(13, 7, 0)) == "1h 53m"

    def test_seconds_component(self):
        assert format_countdown(utc(13, 7, 30)) == "1h 52m"

    def test_under_an_hour(self):
        assert format_countdown(utc(14, 55, 20)) == "4m 40s"
