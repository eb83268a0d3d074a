"""Weekly outing windows and date/time parsing for outing requests."""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from outings.errors import PolicyError, ValidationError

TIME_OF_DAY_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

# Python weekday numbers
SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class OutingWindow:
    """An inclusive range of minutes since midnight."""

    label: str
    opens: int
    closes: int

    def contains(self, minutes: int) -> bool:
        return self.opens <= minutes <= self.closes

    @property
    def reason(self) -> str:
        return (
            f"{self.label} outing time must be between "
            f"{_format_hour(self.opens)} and {_format_hour(self.closes)}"
        )


SUNDAY_WINDOW = OutingWindow("Sunday", 10 * 60, 19 * 60)
SATURDAY_WINDOW = OutingWindow("Saturday", 13 * 60, 19 * 60)
WEEKDAY_WINDOW = OutingWindow("Weekday", 17 * 60, 19 * 60)


@dataclass(frozen=True)
class WindowCheck:
    """Result of checking a date/time against the outing windows."""

    valid: bool
    reason: Optional[str] = None


def _format_hour(minutes: int) -> str:
    hour, minute = divmod(minutes, 60)
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    if minute:
        return f"{display}:{minute:02d} {suffix}"
    return f"{display} {suffix}"


def get_zone(name: str) -> ZoneInfo:
    """Resolve a timezone name, rejecting unknown zones."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name}") from e


def window_for(date: datetime.date) -> OutingWindow:
    """Return the outing window that applies on ``date``."""
    weekday = date.weekday()
    if weekday == SUNDAY:
        return SUNDAY_WINDOW
    if weekday == SATURDAY:
        return SATURDAY_WINDOW
    return WEEKDAY_WINDOW


def parse_time_of_day(value: str) -> int:
    """Parse ``H:MM`` or ``HH:MM`` into minutes since midnight."""
    match = TIME_OF_DAY_RE.match((value or "").strip())
    if not match:
        raise ValidationError("Time must be in HH:MM format.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError("Time must be in HH:MM format.")
    return hours * 60 + minutes


def format_time_of_day(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def parse_outing_date(value: str, tz: datetime.tzinfo) -> datetime.date:
    """Parse ``YYYY-MM-DD`` or an ISO 8601 datetime into a local calendar date.

    Datetimes carrying an offset are converted into ``tz`` first, so a client
    that sends ``2026-10-19T18:30:00Z`` for an Indian Monday gets Tuesday.
    """
    raw = (value or "").strip()
    if not raw:
        raise ValidationError("Date is required.")
    try:
        if len(raw) == 10:
            return datetime.date.fromisoformat(raw)
        parsed = datetime.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError("Date must be YYYY-MM-DD or an ISO 8601 datetime.") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def validate_outing_time(date: datetime.date, time_of_day: str) -> WindowCheck:
    """Check ``time_of_day`` against the window for the weekday of ``date``."""
    minutes = parse_time_of_day(time_of_day)
    window = window_for(date)
    if not window.contains(minutes):
        return WindowCheck(False, window.reason)
    return WindowCheck(True)


def ensure_outing_time(date: datetime.date, time_of_day: str) -> None:
    """Raise ``PolicyError`` if the time falls outside the allowed window."""
    check = validate_outing_time(date, time_of_day)
    if not check.valid:
        raise PolicyError(check.reason)


def local_midnight(date: datetime.date, tz: datetime.tzinfo) -> datetime.datetime:
    """Return the start of ``date`` in ``tz``."""
    return datetime.datetime.combine(date, datetime.time.min, tzinfo=tz)


def compute_expiry(date: datetime.date, tz: datetime.tzinfo) -> datetime.datetime:
    """Return the close of the outing window for ``date``, independent of time."""
    hours, minutes = divmod(window_for(date).closes, 60)
    return datetime.datetime.combine(
        date, datetime.time(hours, minutes), tzinfo=tz
    )


def local_today(now: datetime.datetime, tz: datetime.tzinfo) -> datetime.date:
    """Return today's calendar date in ``tz``."""
    return now.astimezone(tz).date()
