"""Calendar resolver: does a trip operate on a given date?"""

import re
from datetime import date, datetime

from transit_search.models.catalog import ServiceCalendar, Trip

# Zero-padded calendar date, no time part
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# Calendar flag names indexed by weekday (0=Monday, 6=Sunday)
WEEKDAY_COLUMNS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


def parse_service_date(value: str | date | None) -> date | None:
    """Parse a calendar date given as YYYY-MM-DD.

    Args:
        value: Date string, date object, or None.

    Returns:
        The parsed date, or None if no date was given.

    Raises:
        ValueError: If the string is not a valid YYYY-MM-DD date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = value.strip()
    if not text:
        return None
    if not DATE_PATTERN.fullmatch(text):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value}")
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value}") from e


def runs_on_weekday(calendar: ServiceCalendar, service_date: date) -> bool:
    """Return True if the weekly pattern includes the weekday of service_date."""
    return bool(getattr(calendar, WEEKDAY_COLUMNS[service_date.weekday()]))


def within_validity(calendar: ServiceCalendar, service_date: date) -> bool:
    """Return True if service_date falls inside the (inclusive) validity window."""
    if calendar.start_date is not None and service_date < calendar.start_date:
        return False
    if calendar.end_date is not None and service_date > calendar.end_date:
        return False
    return True


def operates(trip: Trip, service_date: date | None) -> bool:
    """Decide whether a trip runs on a calendar date.

    No timezone conversion happens: the date is compared as a plain calendar
    date against the validity bounds and the weekday flags.

    Args:
        trip: Trip to check.
        service_date: Requested date. None means every trip is eligible.

    Returns:
        True if the trip is date-eligible.
    """
    if service_date is None:
        return True
    return within_validity(trip.calendar, service_date) and runs_on_weekday(
        trip.calendar, service_date
    )
