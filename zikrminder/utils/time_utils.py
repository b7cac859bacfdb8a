"""Clock and duration utilities."""

import re
from datetime import datetime, timedelta, timezone
from typing import Protocol

MS = timedelta(milliseconds=1)

_DURATION_PART = re.compile(r"(\d+)(h|m|s)")


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return utc_now()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_ms(delta: timedelta) -> int:
    """Convert a timedelta to whole milliseconds (floor)."""
    return delta // MS


def to_local(dt: datetime) -> datetime:
    """Convert a UTC datetime to the machine's local timezone."""
    return ensure_utc(dt).astimezone()


def parse_duration(text: str) -> int | None:
    """Parse a short duration into milliseconds.

    Examples:
        "90" -> 90000 (bare numbers are seconds)
        "45s" -> 45000
        "10m" -> 600000
        "1h30m" -> 5400000

    Returns:
        Milliseconds, or None if the text is not a duration
    """
    text = text.strip().lower().replace(" ", "")
    if not text:
        return None

    if text.isdigit():
        return int(text) * 1000

    total = 0
    consumed = 0
    for match in _DURATION_PART.finditer(text):
        value, unit = int(match.group(1)), match.group(2)
        total += value * {"h": 3600000, "m": 60000, "s": 1000}[unit]
        consumed += len(match.group(0))

    if consumed != len(text):
        return None

    return total


def format_duration(ms: int) -> str:
    """Format milliseconds into a human-readable duration.

    Examples:
        30000 -> "30 seconds"
        300000 -> "5 minutes"
        5400000 -> "1.5 hours"
    """
    seconds = ms / 1000
    if seconds < 60:
        seconds = int(seconds)
        return f"{seconds} second{'s' if seconds != 1 else ''}"
    minutes = seconds / 60
    if minutes < 60:
        if minutes == int(minutes):
            return f"{int(minutes)} minute{'s' if minutes != 1 else ''}"
        return f"{minutes:.1f} minutes"
    hours = minutes / 60
    if hours == int(hours):
        return f"{int(hours)} hour{'s' if hours != 1 else ''}"
    return f"{hours:.1f} hours"


def format_relative_time(dt: datetime, now: datetime | None = None) -> str:
    """Format a future datetime relative to now.

    Examples:
        "now"
        "in 40 seconds"
        "in 5 minutes"
        "in 2 hours"
    """
    if now is None:
        now = utc_now()

    total_seconds = (dt - now).total_seconds()

    if total_seconds < 1:
        return "now"
    if total_seconds < 60:
        seconds = int(total_seconds)
        return f"in {seconds} second{'s' if seconds != 1 else ''}"
    if total_seconds < 3600:
        minutes = int(total_seconds / 60)
        return f"in {minutes} minute{'s' if minutes != 1 else ''}"
    hours = int(total_seconds / 3600)
    return f"in {hours} hour{'s' if hours != 1 else ''}"
