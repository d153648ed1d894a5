"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import AvailabilityResolver
from .exceptions import InvalidDuration, InvalidTimeFormat, SlotEngineError, StoreUnavailable
from .models import AvailabilityRule, Interval, Reservation, ReservationStatus, Slot
from .occupancy import OccupancyIndex
from .slot_generator import SlotGenerator
from .time_grid import Clock, FixedClock, SystemClock

__all__ = [
    "AvailabilityResolver",
    "AvailabilityRule",
    "Clock",
    "FixedClock",
    "Interval",
    "InvalidDuration",
    "InvalidTimeFormat",
    "OccupancyIndex",
    "Reservation",
    "ReservationStatus",
    "Slot",
    "SlotEngineError",
    "SlotGenerator",
    "StoreUnavailable",
    "SystemClock",
]
