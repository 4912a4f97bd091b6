"""
Parsing and formatting helpers for times of day, dates and timestamps.

Times of day travel as ``HH:MM:SS`` strings, timestamps as ISO 8601 strings
with an explicit offset. Internally every timestamp is a pendulum ``DateTime``.
"""

import re
from datetime import date, datetime, time
from typing import Any, Optional

import pendulum
from pendulum import DateTime

CANONICAL_TIMEZONE = "UTC"

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_time_of_day(value: Any) -> Optional[time]:
    """
    Parse a time-of-day value.

    Accepts ``datetime.time`` objects and ``H:MM``, ``HH:MM`` or ``HH:MM:SS``
    strings. Returns None when the value cannot be understood.
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None, microsecond=0)

    if not isinstance(value, str):
        return None

    match = _TIME_OF_DAY.match(value.strip())
    if not match:
        return None

    hour, minute, second = (int(part) if part else 0 for part in match.groups())
    if hour > 23 or minute > 59 or second > 59:
        return None

    return time(hour=hour, minute=minute, second=second)


def format_time_of_day(value: time) -> str:
    """Format a time of day as ``HH:MM:SS``."""
    return value.strftime("%H:%M:%S")


def time_of_day(dt: datetime) -> time:
    """Strip the date and zone from a timestamp."""
    return time(dt.hour, dt.minute, dt.second, dt.microsecond)


def normalize_timestamp(
    value: Any,
    timezone: Optional[str] = None,
    target: str = CANONICAL_TIMEZONE
) -> DateTime:
    """
    Convert a timestamp into a pendulum DateTime in the target zone.

    Naive datetimes and strings without an offset are interpreted in
    ``timezone`` (UTC when omitted) before being converted. Strings must
    carry a date; a bare time of day is rejected.

    Raises:
        ValueError: If the value is not a timestamp or the zone is unknown
    """
    source_tz = validate_timezone(timezone or CANONICAL_TIMEZONE)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            dt = pendulum.instance(value, tz=source_tz)
        else:
            dt = pendulum.instance(value)
    elif isinstance(value, str) and value.strip():
        try:
            dt = pendulum.parse(value.strip(), tz=source_tz, exact=True)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Could not parse timestamp: {value!r}") from exc
        if not isinstance(dt, DateTime):
            raise ValueError(f"Not a timestamp: {value!r}")
    else:
        raise ValueError(f"Not a timestamp: {value!r}")

    return dt.in_timezone(target)


def parse_date(value: Any) -> date:
    """
    Parse a calendar date from a ``date`` object or a ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the value is not a date
    """
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
        except ValueError as exc:
            raise ValueError(f"Could not parse date: {value!r}") from exc

    raise ValueError(f"Not a date: {value!r}")


def validate_timezone(name: str) -> str:
    """
    Ensure the IANA zone name is known to pendulum.

    Raises:
        ValueError: If the zone does not exist
    """
    try:
        pendulum.timezone(name)
    except Exception as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc
    return name
