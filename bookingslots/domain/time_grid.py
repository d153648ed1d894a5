"""
Timezone and quantization arithmetic.

Everything that turns wall-clock values into instants lives here so the rest
of the engine only compares and adds pendulum ``DateTime`` objects.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional, Protocol

import pendulum
from pendulum import DateTime

from .exceptions import InvalidTimeFormat
from .models import TimeOfDay

GRID_MINUTES = 15
LEAD_TIME_MINUTES = 15

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


class Clock(Protocol):
    """Source of the current instant."""

    def now(self, timezone: str) -> DateTime:
        """Return the current instant in the given timezone."""


class SystemClock:
    """Clock backed by the system time."""

    def now(self, timezone: str) -> DateTime:
        return pendulum.now(timezone)


class FixedClock:
    """Clock frozen at a given instant, for tests and replays."""

    def __init__(self, instant: DateTime):
        self._instant = instant

    def now(self, timezone: str) -> DateTime:
        return self._instant.in_timezone(timezone)


def parse_time_of_day(value: TimeOfDay) -> time:
    """
    Parse an ``HH:MM`` or ``HH:MM:SS`` wall-clock value.

    Raises:
        InvalidTimeFormat: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return value

    match = _TIME_PATTERN.match(value) if isinstance(value, str) else None
    if not match:
        raise InvalidTimeFormat(f"Invalid time of day: {value!r}")

    hour, minute, second = match.groups()
    try:
        return pendulum.time(int(hour), int(minute), int(second or 0))
    except ValueError as exc:
        raise InvalidTimeFormat(f"Invalid time of day: {value!r}") from exc


def as_date(value: date) -> date:
    """Strip the time component if a datetime was passed as a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def localize(target_date: date, time_of_day: TimeOfDay, timezone: str) -> DateTime:
    """
    Anchor a wall-clock time on a calendar date to the business timezone.

    Raises:
        InvalidTimeFormat: If ``time_of_day`` cannot be parsed
    """
    parsed = parse_time_of_day(time_of_day)
    day = as_date(target_date)
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        parsed.hour,
        parsed.minute,
        parsed.second,
        tz=timezone,
    )


def quantize_ceil(instant: DateTime, grid_minutes: int = GRID_MINUTES) -> DateTime:
    """
    Round an instant up to the next multiple of ``grid_minutes`` since local midnight.

    Instants already on the grid (with no seconds) are returned unchanged.
    """
    if grid_minutes <= 0:
        raise ValueError(f"grid_minutes must be positive, got {grid_minutes}")

    minutes_since_midnight = instant.hour * 60 + instant.minute
    remainder = minutes_since_midnight % grid_minutes
    has_seconds = bool(instant.second or instant.microsecond)

    if remainder == 0 and not has_seconds:
        return instant

    aligned = instant.set(second=0, microsecond=0)
    return aligned.add(minutes=grid_minutes - remainder)


def now(timezone: str, clock: Optional[Clock] = None) -> DateTime:
    """Current instant in the business timezone."""
    return (clock or SystemClock()).now(timezone)


def label(instant: DateTime) -> str:
    """Business-local ``HH:MM`` label of an instant."""
    return instant.format("HH:mm")
