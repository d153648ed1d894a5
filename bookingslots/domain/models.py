"""
Domain models for availability rules, reservations and slot calculations.
"""

from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Optional, Union

from pendulum import DateTime

TimeOfDay = Union[str, time]


@dataclass(frozen=True)
class Interval:
    """
    Represents an immutable, half-open time range ``[start, end)``.

    Invariant: end must not be before start. Zero-length intervals are
    allowed so that reservations without a known duration can still be
    represented as busy instants.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"End time {self.end} must not be before start time {self.start}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "Interval") -> bool:
        """Check if this range overlaps with another (touching endpoints do not)."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "Interval") -> bool:
        """Check if another range lies fully within this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


class ReservationStatus(str, Enum):
    """Lifecycle states of a reservation."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        # Statuses this engine does not know never occupy time
        return cls.UNKNOWN


ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


@dataclass(frozen=True)
class AvailabilityRule:
    """
    A window during which a business accepts bookings.

    Recurring rules apply every week on ``day_of_week`` (0=Monday, 6=Sunday).
    Non-recurring rules apply on every date between ``date_effective_from``
    and ``date_effective_to`` inclusive; a missing bound is open-ended.
    Times are business-local wall-clock values (``HH:MM`` or ``HH:MM:SS``).
    """
    business_id: str
    time_start: TimeOfDay
    time_end: TimeOfDay
    is_recurring: bool = True
    day_of_week: Optional[int] = None
    date_effective_from: Optional[date] = None
    date_effective_to: Optional[date] = None

    def applies_to(self, target_date: date) -> bool:
        """Check whether this rule opens the business on the given date."""
        if self.is_recurring:
            return self.day_of_week == target_date.weekday()

        if self.date_effective_from is None and self.date_effective_to is None:
            return False
        if self.date_effective_from is not None and target_date < self.date_effective_from:
            return False
        if self.date_effective_to is not None and target_date > self.date_effective_to:
            return False
        return True


@dataclass(frozen=True)
class Reservation:
    """
    An existing booking for a business on a calendar day.

    ``duration_minutes`` is resolved by the store, either from the
    reservation itself or from its linked service; ``None`` means unknown.
    """
    business_id: str
    date: date
    time_start: TimeOfDay
    duration_minutes: Optional[int] = None
    status: ReservationStatus = ReservationStatus.CONFIRMED

    def __post_init__(self):
        if not isinstance(self.status, ReservationStatus):
            object.__setattr__(self, "status", ReservationStatus(str(self.status).lower()))

    @property
    def is_active(self) -> bool:
        """Only pending and confirmed reservations occupy time."""
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class Slot:
    """
    A bookable start time for a requested duration.
    """
    label: str  # Business-local HH:MM
    start: DateTime
    duration_minutes: int

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)

    def as_interval(self) -> Interval:
        return Interval(start=self.start, end=self.end)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM – HH:MM (N min)
        """
        return f"{self.label} – {self.end.format('HH:mm')} ({self.duration_minutes} min)"
