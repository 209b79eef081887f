from __future__ import annotations

from datetime import date
import re

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$", re.ASCII)
MINUTES_PER_DAY = 24 * 60


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a calendar date.

    The string must match the pattern exactly and name a real day, so
    ``2024-02-30`` is rejected even though it has the right shape.
    """
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise ValueError(f"Date must be in the format YYYY-MM-DD: {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as error:
        raise ValueError(f"Date is not a valid calendar day: {value!r}") from error


def parse_time(value: str) -> int:
    """Parse an ``HH:mm`` 24-hour clock time into minutes since midnight."""
    if not isinstance(value, str) or not TIME_PATTERN.fullmatch(value):
        raise ValueError(f"Time must be in the format HH:mm: {value!r}")

    hours, minutes = (int(part) for part in value.split(":"))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time is out of range: {value!r}")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"minutes must be within a single day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_date_string(value: object) -> bool:
    try:
        parse_date(value)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True


def is_time_string(value: object) -> bool:
    try:
        parse_time(value)  # type: ignore[arg-type]
    except ValueError:
        return False
    return True
