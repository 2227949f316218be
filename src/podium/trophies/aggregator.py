"""Scalar statistics over a participant's activity history.

All sums are exact Decimals and default to zero. Dates are plain calendar
days: no timezone conversion happens here, and records dated after ``as_of``
never count, so evaluating a past date is reproducible.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal

from podium.trophies.types import ZERO, ActivityRecord


class Aggregates:
    """Aggregated view of one participant's records as of a given day."""

    def __init__(self, records: Iterable[ActivityRecord], as_of: date) -> None:
        self.as_of = as_of
        self._records = sorted((r for r in records if r.date <= as_of), key=lambda r: r.date)
        self.cumulative_revenue: Decimal = sum((r.revenue for r in self._records), ZERO)
        self.cumulative_profit: Decimal = sum((r.profit for r in self._records), ZERO)

    def __len__(self) -> int:
        return len(self._records)

    def _window(self, window_days: int) -> list[ActivityRecord]:
        start = self.as_of - timedelta(days=window_days)
        return [r for r in self._records if start <= r.date]

    def rolling_revenue(self, window_days: int) -> Decimal:
        """Revenue over [as_of - window_days, as_of], both ends inclusive."""
        return sum((r.revenue for r in self._window(window_days)), ZERO)

    def rolling_profit(self, window_days: int) -> Decimal:
        """Profit over [as_of - window_days, as_of], both ends inclusive."""
        return sum((r.profit for r in self._window(window_days)), ZERO)

    def monthly_profit(self, year: int, month: int) -> Decimal:
        return sum(
            (r.profit for r in self._records if r.date.year == year and r.date.month == month),
            ZERO,
        )

    def year_profit(self, year: int) -> Decimal:
        return sum((r.profit for r in self._records if r.date.year == year), ZERO)


def aggregate(records: Iterable[ActivityRecord], as_of: date) -> Aggregates:
    """Build the aggregates for one participant."""
    return Aggregates(records, as_of)
