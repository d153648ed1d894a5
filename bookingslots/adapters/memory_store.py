"""
In-memory availability store.
"""

from datetime import date
from typing import Iterable, List, Optional

from ..domain import time_grid
from ..domain.models import AvailabilityRule, Reservation


class InMemoryAvailabilityStore:
    """
    Store holding rules and reservations in plain lists.

    Implements the read side of ``AvailabilityStoreProtocol`` and is handy
    for tests and for callers that already loaded their data elsewhere.
    """

    def __init__(
        self,
        rules: Optional[Iterable[AvailabilityRule]] = None,
        reservations: Optional[Iterable[Reservation]] = None
    ):
        self.rules: List[AvailabilityRule] = list(rules or [])
        self.reservations: List[Reservation] = list(reservations or [])

    async def get_availability_rules(self, business_id: str) -> List[AvailabilityRule]:
        """Return every rule of the business."""
        return [rule for rule in self.rules if rule.business_id == business_id]

    async def get_active_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        """Return pending and confirmed reservations of the business on a date."""
        target_date = time_grid.as_date(target_date)
        return [
            reservation for reservation in self.reservations
            if reservation.business_id == business_id
            and time_grid.as_date(reservation.date) == target_date
            and reservation.is_active
        ]

    def add_reservation(self, reservation: Reservation) -> None:
        self.reservations.append(reservation)
