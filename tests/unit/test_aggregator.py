"""Aggregator tests: sums, rolling windows, calendar buckets."""

from datetime import date
from decimal import Decimal

from podium.trophies.aggregator import aggregate
from podium.trophies.types import ActivityRecord


def _rec(day: date, revenue: str = "0", profit: str = "0") -> ActivityRecord:
    return ActivityRecord(date=day, revenue=Decimal(revenue), profit=Decimal(profit))


class TestCumulative:
    """Cumulative totals."""

    def test_empty_history_is_zero(self):
        agg = aggregate([], date(2025, 3, 15))
        assert agg.cumulative_revenue == 0
        assert agg.cumulative_profit == 0
        assert agg.rolling_revenue(90) == 0
        assert agg.monthly_profit(2025, 3) == 0
        assert agg.year_profit(2025) == 0

    def test_cumulative_is_literal_sum(self):
        records = [
            _rec(date(2024, 11, 2), "1200.50", "300.25"),
            _rec(date(2025, 1, 5), "6000000", "-150"),
            _rec(date(2025, 3, 1), "0.10", "0.20"),
        ]
        agg = aggregate(records, date(2025, 3, 15))
        assert agg.cumulative_revenue == Decimal("6001200.60")
        assert agg.cumulative_profit == Decimal("150.45")

    def test_records_after_as_of_are_ignored(self):
        records = [_rec(date(2025, 3, 15), "100"), _rec(date(2025, 3, 16), "999")]
        agg = aggregate(records, date(2025, 3, 15))
        assert agg.cumulative_revenue == Decimal("100")
        assert len(agg) == 1

    def test_negative_profit_reduces_total(self):
        records = [_rec(date(2025, 1, 1), profit="500"), _rec(date(2025, 1, 2), profit="-800")]
        agg = aggregate(records, date(2025, 1, 31))
        assert agg.cumulative_profit == Decimal("-300")


class TestRollingWindow:
    """Rolling windows are calendar days, inclusive on both ends."""

    def test_boundary_day_exactly_90_days_back_is_included(self):
        as_of = date(2025, 5, 30)
        records = [_rec(date(2025, 3, 1), "5000000")]  # 90 days before as_of
        assert aggregate(records, as_of).rolling_revenue(90) == Decimal("5000000")

    def test_day_91_days_back_is_excluded(self):
        as_of = date(2025, 5, 31)
        records = [_rec(date(2025, 3, 1), "5000000")]  # 91 days before as_of
        assert aggregate(records, as_of).rolling_revenue(90) == 0

    def test_as_of_day_is_included(self):
        as_of = date(2025, 3, 15)
        records = [_rec(as_of, "10", "4")]
        agg = aggregate(records, as_of)
        assert agg.rolling_revenue(90) == Decimal("10")
        assert agg.rolling_profit(90) == Decimal("4")

    def test_both_records_inside_window(self):
        records = [_rec(date(2025, 1, 5), "6000000"), _rec(date(2025, 3, 1), "5000000")]
        assert aggregate(records, date(2025, 3, 15)).rolling_revenue(90) == Decimal("11000000")

    def test_old_record_drops_out(self):
        records = [_rec(date(2025, 1, 5), "6000000"), _rec(date(2025, 3, 1), "5000000")]
        assert aggregate(records, date(2025, 5, 30)).rolling_revenue(90) == Decimal("5000000")

    def test_rolling_profit_window(self):
        records = [
            _rec(date(2024, 12, 1), profit="1000"),
            _rec(date(2025, 2, 1), profit="250"),
            _rec(date(2025, 2, 2), profit="-50"),
        ]
        assert aggregate(records, date(2025, 3, 1)).rolling_profit(30) == Decimal("200")


class TestCalendarBuckets:
    """Monthly and yearly profit sums."""

    def test_monthly_profit_only_counts_that_month(self):
        records = [
            _rec(date(2025, 1, 31), profit="10"),
            _rec(date(2025, 2, 1), profit="20"),
            _rec(date(2025, 2, 28), profit="30"),
            _rec(date(2025, 3, 1), profit="40"),
        ]
        agg = aggregate(records, date(2025, 3, 31))
        assert agg.monthly_profit(2025, 2) == Decimal("50")
        assert agg.monthly_profit(2024, 2) == 0

    def test_year_profit(self):
        records = [
            _rec(date(2024, 12, 31), profit="100"),
            _rec(date(2025, 1, 1), profit="200"),
            _rec(date(2025, 12, 31), profit="300"),
        ]
        agg = aggregate(records, date(2026, 1, 10))
        assert agg.year_profit(2025) == Decimal("500")
        assert agg.year_profit(2024) == Decimal("100")
