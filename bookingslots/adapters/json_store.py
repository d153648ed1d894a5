"""
Availability store backed by a JSON document on disk.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum

from ..domain.exceptions import StoreUnavailable
from ..domain.models import AvailabilityRule, Reservation
from .memory_store import InMemoryAvailabilityStore

logger = logging.getLogger(__name__)


class JsonAvailabilityStore:
    """
    Reads availability rules and reservations from a JSON file.

    Expected format:
    {
        "rules": [
            {"business_id": "b1", "is_recurring": true, "day_of_week": 0,
             "time_start": "09:00", "time_end": "12:00"},
            {"business_id": "b1", "is_recurring": false,
             "date_effective_from": "2024-12-23", "date_effective_to": "2024-12-24",
             "time_start": "15:00", "time_end": "18:00"}
        ],
        "reservations": [
            {"business_id": "b1", "date": "2024-11-25", "time_start": "10:00",
             "duration_minutes": 30, "status": "confirmed"}
        ]
    }

    The file is re-read on every query so each call is a point-in-time read.
    Time strings are passed through untouched; the engine validates them.
    """

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)

    async def get_availability_rules(self, business_id: str) -> List[AvailabilityRule]:
        return await self._snapshot().get_availability_rules(business_id)

    async def get_active_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        return await self._snapshot().get_active_reservations(business_id, target_date)

    def _snapshot(self) -> InMemoryAvailabilityStore:
        """Load the document and convert it into domain records."""
        data = self._load_document()

        rules: List[AvailabilityRule] = []
        for record in data.get("rules", []):
            try:
                rules.append(self._parse_rule(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid rule record %r: %s", record, exc)

        reservations: List[Reservation] = []
        for record in data.get("reservations", []):
            try:
                reservations.append(self._parse_reservation(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid reservation record %r: %s", record, exc)

        return InMemoryAvailabilityStore(rules=rules, reservations=reservations)

    def _load_document(self) -> Dict[str, Any]:
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as exc:
            raise StoreUnavailable(f"Could not read availability data from {self.data_file}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StoreUnavailable(f"Invalid JSON in {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise StoreUnavailable(f"Availability data in {self.data_file} must be a JSON object.")

        return data

    @staticmethod
    def _parse_date(value: Optional[str]) -> Optional[date]:
        if value is None:
            return None
        return pendulum.from_format(value, "YYYY-MM-DD").date()

    @staticmethod
    def _parse_duration(value: Any) -> Optional[int]:
        if value is None or (isinstance(value, int) and not isinstance(value, bool)):
            return value
        if isinstance(value, str) and value.strip().isdecimal():
            return int(value)

        logger.warning("Ignoring unreadable reservation duration %r", value)
        return None

    def _parse_rule(self, record: Dict[str, Any]) -> AvailabilityRule:
        is_recurring = record.get("is_recurring", True)
        if not isinstance(is_recurring, bool):
            raise ValueError(f"is_recurring must be true or false, got {is_recurring!r}")
        day_of_week = record.get("day_of_week")

        if is_recurring and (not isinstance(day_of_week, int) or day_of_week not in range(7)):
            raise ValueError(f"day_of_week must be between 0 and 6, got {day_of_week!r}")

        return AvailabilityRule(
            business_id=str(record["business_id"]),
            time_start=record["time_start"],
            time_end=record["time_end"],
            is_recurring=is_recurring,
            day_of_week=day_of_week,
            date_effective_from=self._parse_date(record.get("date_effective_from")),
            date_effective_to=self._parse_date(record.get("date_effective_to")),
        )

    def _parse_reservation(self, record: Dict[str, Any]) -> Reservation:
        reservation_date = self._parse_date(record["date"])
        if reservation_date is None:
            raise ValueError("Reservation date is missing")

        return Reservation(
            business_id=str(record["business_id"]),
            date=reservation_date,
            time_start=record["time_start"],
            duration_minutes=self._parse_duration(record.get("duration_minutes")),
            status=record.get("status", "confirmed"),
        )
