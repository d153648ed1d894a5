"""
Conversion of active reservations into busy intervals.
"""

import logging
from datetime import date
from typing import Iterable, List

from . import time_grid
from .exceptions import InvalidTimeFormat
from .models import Interval, Reservation

logger = logging.getLogger(__name__)


class OccupancyIndex:
    """
    Builds the busy intervals of one business day.

    Overlapping reservations are kept as separate intervals; the overlap
    test in the generator handles them directly.
    """

    def __init__(self, timezone: str, missing_duration_minutes: int = 0):
        self.timezone = timezone
        self.missing_duration_minutes = missing_duration_minutes

    def build(self, target_date: date, reservations: Iterable[Reservation]) -> List[Interval]:
        """
        Returns:
            Busy intervals sorted ascending by start
        """
        target_date = time_grid.as_date(target_date)
        busy: List[Interval] = []

        for reservation in reservations:
            if not reservation.is_active:
                continue
            if time_grid.as_date(reservation.date) != target_date:
                logger.debug(
                    "Skipping reservation of business %s dated %s while indexing %s",
                    reservation.business_id, reservation.date, target_date
                )
                continue

            try:
                start = time_grid.localize(target_date, reservation.time_start, self.timezone)
            except InvalidTimeFormat as exc:
                logger.warning(
                    "Ignoring reservation of business %s on %s: %s",
                    reservation.business_id, target_date, exc
                )
                continue

            duration = self.resolve_duration(reservation)
            busy.append(Interval(start=start, end=start.add(minutes=duration)))

        return sorted(busy, key=lambda interval: interval.start)

    def resolve_duration(self, reservation: Reservation) -> int:
        """Occupied minutes of a reservation, falling back when the store has none."""
        duration = reservation.duration_minutes
        if isinstance(duration, int) and not isinstance(duration, bool) and duration > 0:
            return duration

        logger.warning(
            "Reservation of business %s on %s at %s has no duration; assuming %d minutes",
            reservation.business_id, reservation.date, reservation.time_start,
            self.missing_duration_minutes
        )
        return self.missing_duration_minutes
