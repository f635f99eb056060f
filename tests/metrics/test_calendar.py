"""Tests for timezone-aware calendar helpers."""

from datetime import date, datetime, timezone

import pytest

from liftforge.metrics.calendar import (
    local_date,
    local_midnight_utc,
    parse_timestamp,
    resolve_timezone,
    to_iso,
    week_start_for,
)


class TestResolveTimezone:
    def test_known_zone(self):
        assert resolve_timezone("America/New_York").key == "America/New_York"

    def test_missing_name_uses_fallback(self):
        assert resolve_timezone(None, "Europe/Madrid").key == "Europe/Madrid"
        assert resolve_timezone("").key == "UTC"

    def test_unknown_zone_raises(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            resolve_timezone("Mars/Olympus_Mons")


class TestTimestamps:
    """Tests for parsing and storage formatting."""

    def test_naive_values_are_utc(self):
        parsed = parse_timestamp("2024-01-10T12:00:00")
        assert parsed.tzinfo is not None
        assert parsed.utcoffset().total_seconds() == 0

    def test_z_suffix(self):
        assert parse_timestamp("2024-01-10T12:00:00Z") == datetime(2024, 1, 10, 12, tzinfo=timezone.utc)

    def test_to_iso_is_utc_with_microseconds(self):
        moment = datetime(2024, 1, 10, 7, 0, tzinfo=resolve_timezone("America/New_York"))
        assert to_iso(moment) == "2024-01-10T12:00:00.000000+00:00"

    def test_to_iso_sorts_as_text(self):
        earlier = to_iso(datetime(2024, 1, 10, 12, 0, 0, tzinfo=timezone.utc))
        later = to_iso(datetime(2024, 1, 10, 12, 0, 0, 1, tzinfo=timezone.utc))
        assert earlier < later


class TestWeekStart:
    """Weeks start on the local Monday."""

    def test_midweek(self):
        assert week_start_for("2024-01-10T12:00:00Z", resolve_timezone("UTC")) == date(2024, 1, 8)

    def test_monday_is_its_own_week_start(self):
        assert week_start_for("2024-01-08T00:00:00Z", resolve_timezone("UTC")) == date(2024, 1, 8)

    def test_sunday_belongs_to_previous_monday(self):
        assert week_start_for("2024-01-14T23:59:00Z", resolve_timezone("UTC")) == date(2024, 1, 8)

    def test_local_zone_moves_the_week(self):
        """Monday 02:00 UTC is still Sunday evening in New York."""
        moment = "2024-01-15T02:00:00Z"

        assert week_start_for(moment, resolve_timezone("UTC")) == date(2024, 1, 15)
        assert week_start_for(moment, resolve_timezone("America/New_York")) == date(2024, 1, 8)

    def test_local_date_east_of_utc(self):
        assert local_date("2024-01-14T23:30:00Z", resolve_timezone("Asia/Tokyo")) == date(2024, 1, 15)


class TestLocalMidnight:
    def test_utc(self):
        now = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
        assert local_midnight_utc(now, resolve_timezone("UTC")) == datetime(2024, 1, 10, tzinfo=timezone.utc)

    def test_west_of_utc(self):
        """07:00 in New York on the 10th; the local day began at 05:00 UTC."""
        now = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
        assert local_midnight_utc(now, resolve_timezone("America/New_York")) == datetime(
            2024, 1, 10, 5, 0, tzinfo=timezone.utc
        )

    def test_before_local_midnight(self):
        """03:00 UTC on the 10th is still the 9th in New York."""
        now = datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc)
        assert local_midnight_utc(now, resolve_timezone("America/New_York")) == datetime(
            2024, 1, 9, 5, 0, tzinfo=timezone.utc
        )
