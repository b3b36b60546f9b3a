"""
Unit tests for publication weeks and freshness checks.
"""

from datetime import date, datetime, timezone

import pytest

from core.dates import (
    current_week,
    format_date,
    is_within_last_week,
    parse_date,
    publication_week,
    publication_week_from_timestamp,
)


class TestPublicationWeek:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2026, 1, 1), "2026-w01"),   # Thursday
            (date(2026, 1, 3), "2026-w01"),   # first Saturday
            (date(2026, 1, 4), "2026-w02"),   # first Sunday starts week 2
            (date(2026, 1, 5), "2026-w02"),
            (date(2026, 12, 31), "2026-w53"),
        ],
    )
    def test_sunday_start_weeks(self, day, expected):
        assert publication_week(day) == expected

    def test_year_starting_on_sunday(self):
        # 2023-01-01 was a Sunday
        assert publication_week(date(2023, 1, 1)) == "2023-w01"
        assert publication_week(date(2023, 1, 8)) == "2023-w02"

    def test_datetime_uses_calendar_date(self):
        assert publication_week(datetime(2026, 1, 5, 23, 59, tzinfo=timezone.utc)) == "2026-w02"

    def test_from_timestamp_is_utc(self):
        assert publication_week_from_timestamp(0) == "1970-w01"

    def test_current_week(self):
        assert current_week(datetime(2026, 1, 5, tzinfo=timezone.utc)) == "2026-w02"


class TestFreshness:
    NOW = datetime(2026, 1, 10, tzinfo=timezone.utc)

    def test_exactly_seven_days_is_fresh(self):
        assert is_within_last_week(date(2026, 1, 3), now=self.NOW)

    def test_older_than_seven_days_is_stale(self):
        assert not is_within_last_week(date(2026, 1, 2), now=self.NOW)

    def test_naive_datetimes_are_utc(self):
        assert is_within_last_week(datetime(2026, 1, 9, 12), now=self.NOW)

    def test_custom_window(self):
        assert not is_within_last_week(date(2026, 1, 7), now=self.NOW, days=2)


class TestParseDate:
    def test_iso_datetime_with_z(self):
        parsed = parse_date("2026-01-05T10:30:00Z")
        assert parsed == datetime(2026, 1, 5, 10, 30, tzinfo=timezone.utc)

    def test_plain_date(self):
        assert parse_date("2026-01-05") == datetime(2026, 1, 5, tzinfo=timezone.utc)

    def test_date_prefix(self):
        assert parse_date("2026-01-05, Monday").date() == date(2026, 1, 5)

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12345])
    def test_unreadable_values(self, value):
        assert parse_date(value) is None

    def test_format_date(self):
        assert format_date(datetime(2026, 1, 5, 10, tzinfo=timezone.utc)) == "2026-01-05"
