"""Shared time and display helpers used across the booking modules."""

from datetime import date, datetime, time
from typing import Any, Optional

MINUTES_PER_DAY = 24 * 60


def parse_time_string(value: Any) -> Optional[tuple[int, int]]:
    """Parse a time representation into an ``(hour, minute)`` pair.

    Accepts ``HH:MM`` and ``HH:MM:SS`` strings, ISO datetime strings,
    ``datetime``/``time`` objects and ``{"hour": .., "minute": ..}`` mappings.
    ISO strings carrying an offset are converted to local time.
    Returns None for empty or malformed input.

    Examples:
        >>> parse_time_string("09:30:00")
        (9, 30)
        >>> parse_time_string("17")
        (17, 0)
        >>> parse_time_string("noon") is None
        True
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.hour, value.minute
    if isinstance(value, time):
        return value.hour, value.minute
    if isinstance(value, dict):
        try:
            return int(value["hour"]), int(value.get("minute") or 0)
        except (KeyError, TypeError, ValueError):
            return None

    text = str(value).strip()
    if "T" in text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parse_time_string(parsed)

    parts = text.split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        return None
    return hour, minute


def parse_date(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string, ISO datetime string or date object.

    Datetimes with an offset are converted to local time before the
    calendar day is taken. Returns None for empty or malformed input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if "T" in text:
            return parse_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def to_minutes(hour: int, minute: int = 0) -> int:
    """Convert an hour/minute pair to minutes since midnight."""
    return hour * 60 + minute


def time_to_minutes(value: Any) -> Optional[int]:
    """Parse a time representation straight to minutes since midnight."""
    parsed = parse_time_string(value)
    if parsed is None:
        return None
    return to_minutes(*parsed)


def format_slot(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded ``HH:MM`` string."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def elapsed_minutes(start: Any, end: Any) -> Optional[int]:
    """Minutes from start to end, wrapping through midnight when end < start."""
    start_mins = time_to_minutes(start)
    end_mins = time_to_minutes(end)
    if start_mins is None or end_mins is None:
        return None
    if end_mins < start_mins:
        return (MINUTES_PER_DAY - start_mins) + end_mins
    return end_mins - start_mins


def format_time_12h(value: Optional[str]) -> str:
    """Format ``HH:MM`` as a 12-hour clock string, e.g. ``2:30 PM``."""
    if not value:
        return "Select"
    hours, _, minutes = value.partition(":")
    hour = int(hours)
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minutes[:2] or '00'} {suffix}"


def format_duration(minutes: Optional[int]) -> str:
    """Human readable duration, e.g. ``1 hour 30 min``."""
    if not minutes:
        return ""
    hours, mins = divmod(int(minutes), 60)
    if hours and mins:
        return f"{hours} hour{'s' if hours > 1 else ''} {mins} min"
    if hours:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    return f"{mins} min"


def format_currency(amount: float) -> str:
    """Format a dollar amount for display, e.g. ``$1,234.50``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
