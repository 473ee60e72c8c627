"""Calendar-day helpers. All day boundaries are UTC."""
from __future__ import annotations

from datetime import date, datetime, timezone

from .exceptions import InputRejectedError

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a calendar date.

    Raises:
        InputRejectedError: if the string is not a real calendar date.
    """
    if not isinstance(value, str) or len(value) != 10:
        raise InputRejectedError(f"Malformed date: {value!r}")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as err:
        raise InputRejectedError(f"Malformed date: {value!r}") from err


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def utc_today() -> date:
    """Return the current calendar day in UTC."""
    return datetime.now(timezone.utc).date()


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def days_between(earlier: str, later: str) -> int:
    """Number of calendar days from ``earlier`` to ``later``."""
    return (parse_date(later) - parse_date(earlier)).days
