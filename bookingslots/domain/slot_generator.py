"""
Core business logic for calculating bookable start times.

This is the heart of the engine - pure domain logic without any external
dependencies (no store access, no clock reads, no I/O).
"""

from datetime import date
from typing import List, Sequence, Set

from pendulum import DateTime

from . import time_grid
from .exceptions import InvalidDuration
from .models import Interval, Slot


class SlotGenerator:
    """
    Walks open intervals on a fixed grid and keeps the candidates that fit.

    Algorithm:
    1. Reject non-positive durations, return nothing for past dates
    2. For each open interval, start at its beginning (or at the lead-time
       cutoff when the date is today)
    3. Step by the grid while the candidate still ends inside the interval
    4. Drop candidates overlapping a busy interval or already emitted
    5. Return the slots sorted by wall-clock time

    Stepping by the grid instead of the duration keeps every service on the
    same cadence regardless of its length.
    """

    def __init__(
        self,
        grid_minutes: int = time_grid.GRID_MINUTES,
        lead_time_minutes: int = time_grid.LEAD_TIME_MINUTES
    ):
        if grid_minutes <= 0:
            raise ValueError(f"grid_minutes must be positive, got {grid_minutes}")
        if lead_time_minutes < 0:
            raise ValueError(f"lead_time_minutes must not be negative, got {lead_time_minutes}")
        self.grid_minutes = grid_minutes
        self.lead_time_minutes = lead_time_minutes

    @staticmethod
    def validate_duration(duration_minutes: int) -> int:
        """
        Raises:
            InvalidDuration: If the duration is not a positive integer
        """
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise InvalidDuration(f"Duration must be an integer number of minutes, got {duration_minutes!r}")
        if duration_minutes <= 0:
            raise InvalidDuration(f"Duration must be greater than zero, got {duration_minutes}")
        return duration_minutes

    def generate(
        self,
        *,
        target_date: date,
        timezone: str,
        open_intervals: Sequence[Interval],
        busy_intervals: Sequence[Interval],
        duration_minutes: int,
        now: DateTime
    ) -> List[Slot]:
        """
        Compute the valid slots for one business day.

        Args:
            target_date: Business-local calendar date
            timezone: IANA timezone of the business
            open_intervals: Intervals during which bookings may happen
            busy_intervals: Intervals occupied by active reservations
            duration_minutes: Occupancy a new booking would consume
            now: Current instant

        Returns:
            Slots sorted ascending by (hour, minute), one per label

        Raises:
            InvalidDuration: If duration_minutes is not positive
        """
        self.validate_duration(duration_minutes)
        target_date = time_grid.as_date(target_date)
        local_now = now.in_timezone(timezone)
        today = local_now.date()

        if target_date < today:
            return []

        cutoff = self.earliest_start(local_now) if target_date == today else None

        slots: List[Slot] = []
        seen: Set[str] = set()

        for open_interval in sorted(open_intervals, key=lambda interval: interval.start):
            candidate = open_interval.start
            if cutoff is not None and candidate < cutoff:
                candidate = cutoff

            while candidate.add(minutes=duration_minutes) <= open_interval.end:
                candidate_end = candidate.add(minutes=duration_minutes)
                slot_label = time_grid.label(candidate)

                if slot_label not in seen and not self.is_blocked(candidate, candidate_end, busy_intervals):
                    slots.append(Slot(label=slot_label, start=candidate, duration_minutes=duration_minutes))
                    seen.add(slot_label)

                candidate = candidate.add(minutes=self.grid_minutes)

        return sorted(slots, key=lambda slot: (slot.start.hour, slot.start.minute))

    def generate_labels(self, **kwargs) -> List[str]:
        """Same as :meth:`generate`, returning only the ``HH:MM`` labels."""
        return [slot.label for slot in self.generate(**kwargs)]

    def earliest_start(self, now: DateTime) -> DateTime:
        """Lead-time cutoff for same-day bookings, rounded up to the grid."""
        return time_grid.quantize_ceil(now.add(minutes=self.lead_time_minutes), self.grid_minutes)

    @staticmethod
    def is_blocked(start: DateTime, end: DateTime, busy_intervals: Sequence[Interval]) -> bool:
        """Half-open overlap test; back-to-back bookings do not conflict."""
        return any(start < busy.end and end > busy.start for busy in busy_intervals)
