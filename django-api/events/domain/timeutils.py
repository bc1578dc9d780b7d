"""Time-of-day and calendar date helpers."""

import re
from datetime import date, datetime, time

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def time_to_minutes(value: str | time) -> int:
    """Convert 'HH:MM' (or a time) to minutes since midnight.

    Raises ValueError for invalid formats.
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    parts = str(value).strip().split(":")
    if len(parts) < 2 or not all(p.isdigit() for p in parts[:2]):
        raise ValueError(f"Invalid time format: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time value: {value!r}")
    return hours * 60 + minutes


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def format_time_range(start: time, end: time) -> str:
    return f"{format_time(start)} - {format_time(end)}"


def format_date(value: str | date | None) -> str:
    """Format a calendar day as DD/MM/YYYY.

    YYYY-MM-DD strings are rearranged directly so no timezone conversion can
    shift the day. Anything that cannot be parsed is returned unchanged.
    """
    if not value:
        return ""
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if _ISO_DATE.match(value):
        year, month, day = value.split("-")
        return f"{day}/{month}/{year}"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%d/%m/%Y")


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    # half-open [start, end)
    return a_start < b_end and b_start < a_end
