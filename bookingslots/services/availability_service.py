"""
Application service computing bookable slots for a business.

The service coordinates the two point-in-time store reads (availability
rules and active reservations) and hands the snapshot to the synchronous
domain engine. The store dependency is expressed as a simple protocol so
tests and callers can plug in any backend.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..config import AppConfig
from ..domain import time_grid
from ..domain.availability import AvailabilityResolver
from ..domain.models import AvailabilityRule, Reservation, Slot
from ..domain.occupancy import OccupancyIndex
from ..domain.slot_generator import SlotGenerator
from ..domain.time_grid import Clock

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Rome"


class AvailabilityStoreProtocol(Protocol):
    """Protocol describing the store reads needed by the service."""

    async def get_availability_rules(self, business_id: str) -> List[AvailabilityRule]:
        """Return every availability rule of the business."""

    async def get_active_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        """Return pending and confirmed reservations of the business on a date."""


class AvailabilityService:
    """
    Orchestrates store reads and slot generation.

    Store failures (``StoreUnavailable``) propagate unchanged; the service
    never retries. An empty result always means "no bookable time".
    """

    def __init__(
        self,
        store: AvailabilityStoreProtocol,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        slot_generator: Optional[SlotGenerator] = None,
        clock: Optional[Clock] = None,
        missing_duration_minutes: int = 0,
    ) -> None:
        self._store = store
        self._slot_generator = slot_generator or SlotGenerator()
        self._clock = clock
        self.timezone = timezone
        self.missing_duration_minutes = missing_duration_minutes

    @classmethod
    def from_config(
        cls,
        store: AvailabilityStoreProtocol,
        config: AppConfig,
        clock: Optional[Clock] = None,
    ) -> "AvailabilityService":
        """Build a service using the engine settings of an ``AppConfig``."""
        return cls(
            store,
            timezone=config.timezone,
            slot_generator=SlotGenerator(
                grid_minutes=config.engine.grid_minutes,
                lead_time_minutes=config.engine.lead_time_minutes,
            ),
            clock=clock,
            missing_duration_minutes=config.engine.missing_duration_minutes,
        )

    async def compute_slots(
        self,
        business_id: str,
        target_date: date,
        duration_minutes: int,
        timezone: Optional[str] = None,
    ) -> List[str]:
        """
        Compute the bookable ``HH:MM`` start times of a business day.

        Raises:
            InvalidDuration: If duration_minutes is not positive
            StoreUnavailable: If the store cannot be read
        """
        slots = await self.compute_slot_details(
            business_id, target_date, duration_minutes, timezone=timezone
        )
        return [slot.label for slot in slots]

    async def compute_slot_details(
        self,
        business_id: str,
        target_date: date,
        duration_minutes: int,
        timezone: Optional[str] = None,
    ) -> List[Slot]:
        """Like :meth:`compute_slots`, returning full ``Slot`` objects."""
        self._slot_generator.validate_duration(duration_minutes)
        tz = timezone or self.timezone
        target_date = time_grid.as_date(target_date)
        now = time_grid.now(tz, self._clock)

        if target_date < now.date():
            logger.debug("Date %s is in the past for business %s; no slots", target_date, business_id)
            return []

        rules, reservations = await asyncio.gather(
            self._store.get_availability_rules(business_id),
            self._store.get_active_reservations(business_id, target_date),
        )

        slots = self.calculate_slots(
            business_id=business_id,
            target_date=target_date,
            timezone=tz,
            rules=rules,
            reservations=reservations,
            duration_minutes=duration_minutes,
            now=now,
        )
        logger.info(
            "Computed %d slot(s) for business %s on %s (duration %d min)",
            len(slots), business_id, target_date, duration_minutes
        )
        return slots

    async def is_slot_available(
        self,
        business_id: str,
        target_date: date,
        time_label: str,
        duration_minutes: int,
        timezone: Optional[str] = None,
    ) -> bool:
        """
        Re-validate a chosen start time against fresh store data.

        Meant to be called by the reservation-creation transaction right
        before it writes, since a slot list shown earlier may be stale.

        Raises:
            InvalidTimeFormat: If time_label is not a valid time of day
        """
        requested = time_grid.parse_time_of_day(time_label)
        wanted_label = f"{requested.hour:02d}:{requested.minute:02d}"

        slots = await self.compute_slot_details(
            business_id, target_date, duration_minutes, timezone=timezone
        )
        return any(slot.label == wanted_label for slot in slots)

    async def available_dates(
        self,
        business_id: str,
        start_date: date,
        end_date: date,
        duration_minutes: int,
        timezone: Optional[str] = None,
    ) -> List[date]:
        """
        List the dates of an inclusive range that offer at least one slot.

        Rules are read once; reservations are read only for days that
        have applicable rules.

        Raises:
            ValueError: If end_date is before start_date
        """
        self._slot_generator.validate_duration(duration_minutes)
        start_date = time_grid.as_date(start_date)
        end_date = time_grid.as_date(end_date)
        if end_date < start_date:
            raise ValueError(f"End date {end_date} must not be before start date {start_date}")

        tz = timezone or self.timezone
        now = time_grid.now(tz, self._clock)
        resolver = AvailabilityResolver(business_id=business_id, timezone=tz)

        rules = await self._store.get_availability_rules(business_id)

        available: List[date] = []
        current = pendulum.date(start_date.year, start_date.month, start_date.day)
        first_bookable = now.date()

        while current <= end_date:
            if current >= first_bookable and resolver.applicable_rules(current, rules):
                reservations = await self._store.get_active_reservations(business_id, current)
                slots = self.calculate_slots(
                    business_id=business_id,
                    target_date=current,
                    timezone=tz,
                    rules=rules,
                    reservations=reservations,
                    duration_minutes=duration_minutes,
                    now=now,
                )
                if slots:
                    available.append(current)
            current = current.add(days=1)

        return available

    def calculate_slots(
        self,
        *,
        business_id: str,
        target_date: date,
        timezone: str,
        rules: Sequence[AvailabilityRule],
        reservations: Sequence[Reservation],
        duration_minutes: int,
        now: DateTime,
    ) -> List[Slot]:
        """Run the engine on an already fetched snapshot."""
        resolver = AvailabilityResolver(business_id=business_id, timezone=timezone)
        occupancy = OccupancyIndex(
            timezone=timezone,
            missing_duration_minutes=self.missing_duration_minutes,
        )

        return self._slot_generator.generate(
            target_date=target_date,
            timezone=timezone,
            open_intervals=resolver.resolve(target_date, rules),
            busy_intervals=occupancy.build(target_date, reservations),
            duration_minutes=duration_minutes,
            now=now,
        )
