"""
Tests for the JSON and in-memory availability stores.
"""

import asyncio
import json
import logging
from datetime import date
from pathlib import Path

import pendulum
import pytest

from bookingslots.adapters.json_store import JsonAvailabilityStore
from bookingslots.adapters.memory_store import InMemoryAvailabilityStore
from bookingslots.domain.exceptions import StoreUnavailable
from bookingslots.domain.models import AvailabilityRule, Reservation, ReservationStatus
from bookingslots.domain.time_grid import FixedClock
from bookingslots.services.availability_service import AvailabilityService

MONDAY = date(2024, 11, 25)


def _write(tmp_path: Path, data) -> Path:
    data_file = tmp_path / "availability.json"
    data_file.write_text(json.dumps(data), encoding="utf-8")
    return data_file


class TestInMemoryAvailabilityStore:
    """Tests for InMemoryAvailabilityStore."""

    def test_filters_by_business_date_and_status(self):
        store = InMemoryAvailabilityStore(
            rules=[
                AvailabilityRule(business_id="b1", day_of_week=0, time_start="09:00", time_end="12:00"),
                AvailabilityRule(business_id="b2", day_of_week=0, time_start="09:00", time_end="12:00"),
            ],
            reservations=[
                Reservation(business_id="b1", date=MONDAY, time_start="09:00", duration_minutes=30),
                Reservation(business_id="b1", date=MONDAY, time_start="10:00", status=ReservationStatus.CANCELLED),
                Reservation(business_id="b1", date=date(2024, 11, 26), time_start="09:00"),
                Reservation(business_id="b2", date=MONDAY, time_start="09:00"),
            ],
        )

        rules = asyncio.run(store.get_availability_rules("b1"))
        reservations = asyncio.run(store.get_active_reservations("b1", MONDAY))

        assert len(rules) == 1
        assert [r.time_start for r in reservations] == ["09:00"]

    def test_add_reservation(self):
        store = InMemoryAvailabilityStore()
        store.add_reservation(Reservation(business_id="b1", date=MONDAY, time_start="09:00"))

        assert len(asyncio.run(store.get_active_reservations("b1", MONDAY))) == 1


class TestJsonAvailabilityStore:
    """Tests for JsonAvailabilityStore."""

    def test_reads_rules_and_reservations(self, tmp_path: Path):
        data_file = _write(tmp_path, {
            "rules": [
                {"business_id": "b1", "is_recurring": True, "day_of_week": 0, "time_start": "09:00", "time_end": "12:00"},
                {"business_id": "b1", "is_recurring": False, "date_effective_from": "2024-12-23",
                 "date_effective_to": "2024-12-24", "time_start": "10:00", "time_end": "16:00"},
            ],
            "reservations": [
                {"business_id": "b1", "date": "2024-11-25", "time_start": "10:00", "duration_minutes": 30, "status": "confirmed"},
                {"business_id": "b1", "date": "2024-11-25", "time_start": "11:00", "status": "PENDING"},
                {"business_id": "b1", "date": "2024-11-25", "time_start": "12:00", "status": "cancelled"},
            ],
        })
        store = JsonAvailabilityStore(data_file)

        rules = asyncio.run(store.get_availability_rules("b1"))
        reservations = asyncio.run(store.get_active_reservations("b1", MONDAY))

        assert len(rules) == 2
        assert rules[1].date_effective_from == date(2024, 12, 23)
        assert rules[1].applies_to(date(2024, 12, 24))
        assert [(r.time_start, r.duration_minutes, r.status) for r in reservations] == [
            ("10:00", 30, ReservationStatus.CONFIRMED),
            ("11:00", None, ReservationStatus.PENDING),
        ]

    def test_invalid_records_are_skipped(self, tmp_path: Path, caplog):
        data_file = _write(tmp_path, {
            "rules": [
                {"business_id": "b1", "day_of_week": 9, "time_start": "09:00", "time_end": "12:00"},
                {"business_id": "b1", "day_of_week": 0, "time_end": "12:00"},
                {"business_id": "b1", "is_recurring": "false", "day_of_week": 0,
                 "date_effective_from": "2024-11-25", "time_start": "09:00", "time_end": "12:00"},
                {"business_id": "b1", "day_of_week": 0, "time_start": "14:00", "time_end": "16:00"},
            ],
            "reservations": [
                {"business_id": "b1", "date": "25/11/2024", "time_start": "10:00"},
            ],
        })
        store = JsonAvailabilityStore(data_file)

        with caplog.at_level(logging.WARNING, logger="bookingslots.adapters.json_store"):
            rules = asyncio.run(store.get_availability_rules("b1"))
            reservations = asyncio.run(store.get_active_reservations("b1", MONDAY))

        assert [r.time_start for r in rules] == ["14:00"]
        assert reservations == []
        assert "Skipping invalid rule record" in caplog.text
        assert "Skipping invalid reservation record" in caplog.text

    def test_unknown_status_is_read_as_inactive(self, tmp_path: Path, caplog):
        data_file = _write(tmp_path, {
            "reservations": [
                {"business_id": "b1", "date": "2024-11-25", "time_start": "10:00", "status": "archived"},
            ],
        })
        store = JsonAvailabilityStore(data_file)

        with caplog.at_level(logging.WARNING, logger="bookingslots.adapters.json_store"):
            reservations = asyncio.run(store.get_active_reservations("b1", MONDAY))

        assert reservations == []
        assert "Skipping invalid reservation record" not in caplog.text

    def test_string_durations(self, tmp_path: Path, caplog):
        """Numeric strings are read as minutes, anything else as unknown."""
        data_file = _write(tmp_path, {
            "reservations": [
                {"business_id": "b1", "date": "2024-11-25", "time_start": "10:00", "duration_minutes": "30"},
                {"business_id": "b1", "date": "2024-11-25", "time_start": "11:00", "duration_minutes": "half an hour"},
            ],
        })
        store = JsonAvailabilityStore(data_file)

        with caplog.at_level(logging.WARNING, logger="bookingslots.adapters.json_store"):
            reservations = asyncio.run(store.get_active_reservations("b1", MONDAY))

        assert [r.duration_minutes for r in reservations] == [30, None]
        assert "Ignoring unreadable reservation duration" in caplog.text

    def test_string_duration_does_not_break_slot_computation(self, tmp_path: Path):
        data_file = _write(tmp_path, {
            "rules": [
                {"business_id": "b1", "day_of_week": 0, "time_start": "09:00", "time_end": "12:00"},
            ],
            "reservations": [
                {"business_id": "b1", "date": "2024-11-25", "time_start": "10:00",
                 "duration_minutes": "30", "status": "confirmed"},
            ],
        })
        service = AvailabilityService(
            JsonAvailabilityStore(data_file),
            timezone="Europe/Rome",
            clock=FixedClock(pendulum.datetime(2024, 11, 20, 8, 0, tz="Europe/Rome")),
        )

        slots = asyncio.run(service.compute_slots("b1", MONDAY, 30))

        assert "09:30" in slots
        assert "09:45" not in slots
        assert "10:15" not in slots
        assert "10:30" in slots

    def test_missing_file_raises_store_unavailable(self, tmp_path: Path):
        store = JsonAvailabilityStore(tmp_path / "missing.json")

        with pytest.raises(StoreUnavailable, match="Could not read"):
            asyncio.run(store.get_availability_rules("b1"))

    def test_invalid_json_raises_store_unavailable(self, tmp_path: Path):
        data_file = tmp_path / "availability.json"
        data_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreUnavailable, match="Invalid JSON"):
            asyncio.run(JsonAvailabilityStore(data_file).get_active_reservations("b1", MONDAY))

    def test_non_object_root_raises_store_unavailable(self, tmp_path: Path):
        data_file = _write(tmp_path, [1, 2, 3])

        with pytest.raises(StoreUnavailable, match="JSON object"):
            asyncio.run(JsonAvailabilityStore(data_file).get_availability_rules("b1"))

    def test_changes_on_disk_are_picked_up(self, tmp_path: Path):
        data_file = _write(tmp_path, {"reservations": []})
        store = JsonAvailabilityStore(data_file)
        assert asyncio.run(store.get_active_reservations("b1", MONDAY)) == []

        _write(tmp_path, {"reservations": [{"business_id": "b1", "date": "2024-11-25", "time_start": "10:00"}]})

        assert len(asyncio.run(store.get_active_reservations("b1", MONDAY))) == 1
