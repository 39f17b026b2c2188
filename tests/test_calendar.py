"""Tests for the calendar resolver."""

from datetime import date, datetime

import pytest

from transit_search.models.catalog import ServiceCalendar, Trip
from transit_search.services.calendar import (
    operates,
    parse_service_date,
    runs_on_weekday,
    within_validity,
)


def _trip(**calendar) -> Trip:
    return Trip(trip_id="T", number="1", operator="KSRTC", calendar=ServiceCalendar(**calendar))


class TestParseServiceDate:
    """Tests for parse_service_date."""

    def test_parses_iso_date(self) -> None:
        assert parse_service_date("2025-09-20") == date(2025, 9, 20)

    def test_none_and_blank(self) -> None:
        assert parse_service_date(None) is None
        assert parse_service_date("  ") is None

    def test_accepts_date_and_datetime(self) -> None:
        assert parse_service_date(date(2025, 9, 20)) == date(2025, 9, 20)
        assert parse_service_date(datetime(2025, 9, 20, 13, 0)) == date(2025, 9, 20)

    @pytest.mark.parametrize(
        "value",
        ["20-09-2025", "2025-02-30", "tomorrow", "2025/09/20", "2025-9-20", "20250920"],
    )
    def test_malformed_raises(self, value: str) -> None:
        with pytest.raises(ValueError, match="Invalid date"):
            parse_service_date(value)


class TestOperates:
    """Tests for operates()."""

    def test_no_date_bypasses_calendar(self) -> None:
        trip = _trip(monday=False, start_date=date(2030, 1, 1))
        assert operates(trip, None) is True

    def test_inside_window_and_weekday(self) -> None:
        trip = _trip(start_date=date(2025, 9, 1), end_date=date(2026, 3, 31))
        assert operates(trip, date(2025, 9, 20)) is True

    def test_outside_window(self) -> None:
        trip = _trip(start_date=date(2025, 1, 1), end_date=date(2025, 6, 30))
        assert operates(trip, date(2025, 9, 20)) is False

    def test_window_bounds_inclusive(self) -> None:
        trip = _trip(start_date=date(2025, 1, 1), end_date=date(2025, 6, 30))
        assert operates(trip, date(2025, 1, 1)) is True
        assert operates(trip, date(2025, 6, 30)) is True
        assert operates(trip, date(2025, 7, 1)) is False

    def test_weekday_flag_off(self) -> None:
        # 2025-09-20 is a Saturday
        trip = _trip(saturday=False)
        assert operates(trip, date(2025, 9, 20)) is False
        assert operates(trip, date(2025, 9, 22)) is True

    def test_open_ended_window(self) -> None:
        trip = _trip(start_date=date(2025, 1, 1))
        assert operates(trip, date(2099, 1, 1)) is True
        assert operates(trip, date(2024, 12, 31)) is False


class TestHelpers:
    def test_runs_on_weekday_each_day(self) -> None:
        calendar = ServiceCalendar(
            monday=True,
            tuesday=False,
            wednesday=True,
            thursday=False,
            friday=True,
            saturday=False,
            sunday=True,
        )
        # 2025-09-15 is a Monday
        expected = [True, False, True, False, True, False, True]
        for offset, flag in enumerate(expected):
            assert runs_on_weekday(calendar, date(2025, 9, 15 + offset)) is flag

    def test_within_validity_unbounded(self) -> None:
        assert within_validity(ServiceCalendar(), date(1990, 1, 1)) is True
