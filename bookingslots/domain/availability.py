"""
Expansion of a business's availability rules into open intervals for one day.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from . import time_grid
from .exceptions import InvalidTimeFormat
from .models import AvailabilityRule, Interval

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """
    Turns recurring and date-ranged rules into localized open intervals.

    Overlapping rules are not merged: a candidate slot only needs to fit
    inside one of them, so the generator works on the raw list.
    """

    def __init__(self, business_id: str, timezone: str):
        self.business_id = business_id
        self.timezone = timezone

    def applicable_rules(
        self,
        target_date: date,
        rules: Iterable[AvailabilityRule]
    ) -> List[AvailabilityRule]:
        """Select the rules of this business that apply on the target date."""
        target_date = time_grid.as_date(target_date)
        return [
            rule for rule in rules
            if rule.business_id == self.business_id and rule.applies_to(target_date)
        ]

    def resolve(
        self,
        target_date: date,
        rules: Iterable[AvailabilityRule]
    ) -> List[Interval]:
        """
        Build the open intervals for the target date.

        Returns:
            Intervals sorted ascending by start (stable on ties). An empty
            list means the business is closed that day.
        """
        intervals: List[Interval] = []

        for rule in self.applicable_rules(target_date, rules):
            interval = self._rule_interval(target_date, rule)
            if interval is not None:
                intervals.append(interval)

        return sorted(intervals, key=lambda interval: interval.start)

    def _rule_interval(self, target_date: date, rule: AvailabilityRule) -> Optional[Interval]:
        """Localize one rule; malformed rules contribute nothing."""
        try:
            start = time_grid.localize(target_date, rule.time_start, self.timezone)
            end = time_grid.localize(target_date, rule.time_end, self.timezone)
        except InvalidTimeFormat as exc:
            logger.warning(
                "Ignoring availability rule of business %s on %s: %s",
                self.business_id, target_date, exc
            )
            return None

        if start >= end:
            logger.warning(
                "Ignoring availability rule of business %s on %s: start %s is not before end %s",
                self.business_id, target_date, rule.time_start, rule.time_end
            )
            return None

        return Interval(start=start, end=end)
