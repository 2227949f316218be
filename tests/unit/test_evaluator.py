"""Evaluator tests: thresholds, progress percent, held trophies, monthly trophy."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from podium.trophies.aggregator import aggregate
from podium.trophies.evaluator import evaluate, metric_value, progress_percent
from podium.trophies.types import ActivityRecord, Trophy


@dataclass
class _Award:
    trophy_id: str
    period_key: str = "once"
    awarded_at: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)


SPRINT = Trophy(
    id="sprint_90d",
    name="90-day sprint",
    condition_type="rolling_window_revenue",
    threshold_value=Decimal("10000000"),
    window_days=90,
)
MILLION = Trophy(
    id="revenue_1m",
    name="First million",
    condition_type="cumulative_revenue",
    threshold_value=Decimal("1000000"),
)
PROFIT = Trophy(
    id="profit_1k",
    name="Profit 1k",
    condition_type="cumulative_profit",
    threshold_value=Decimal("1000"),
)
MONTHLY = Trophy(id="monthly_best", name="Best month", condition_type="monthly_best_profit", repeatable=True)

RECORDS = [
    ActivityRecord(date=date(2025, 1, 5), revenue=Decimal("6000000")),
    ActivityRecord(date=date(2025, 3, 1), revenue=Decimal("5000000")),
]


def _progress(result, trophy_id):
    return next(p for p in result.progress if p.trophy_id == trophy_id)


class TestThresholdTrophies:
    """Threshold comparisons and progress."""

    def test_rolling_sum_inside_window_is_eligible(self):
        as_of = date(2025, 3, 15)
        result = evaluate(aggregate(RECORDS, as_of), [], [SPRINT], as_of)

        assert [e.trophy_id for e in result.newly_eligible] == ["sprint_90d"]
        assert result.newly_eligible[0].value_achieved == Decimal("11000000")
        assert _progress(result, "sprint_90d").progress_percent == Decimal("100")

    def test_rolling_sum_after_old_record_leaves_window(self):
        as_of = date(2025, 5, 30)
        result = evaluate(aggregate(RECORDS, as_of), [], [SPRINT], as_of)

        assert result.newly_eligible == []
        view = _progress(result, "sprint_90d")
        assert view.current_value == Decimal("5000000")
        assert view.progress_percent == Decimal("50.00")
        assert view.obtained is False

    def test_window_empty_two_days_later(self):
        as_of = date(2025, 6, 1)
        result = evaluate(aggregate(RECORDS, as_of), [], [SPRINT], as_of)
        assert _progress(result, "sprint_90d").current_value == 0
        assert _progress(result, "sprint_90d").progress_percent == 0

    def test_threshold_is_inclusive(self):
        records = [ActivityRecord(date=date(2025, 2, 1), revenue=Decimal("1000000"))]
        as_of = date(2025, 2, 1)
        result = evaluate(aggregate(records, as_of), [], [MILLION], as_of)
        assert [e.trophy_id for e in result.newly_eligible] == ["revenue_1m"]

    def test_just_below_threshold_is_not_eligible(self):
        records = [ActivityRecord(date=date(2025, 2, 1), revenue=Decimal("999999.99"))]
        as_of = date(2025, 2, 1)
        result = evaluate(aggregate(records, as_of), [], [MILLION], as_of)
        assert result.newly_eligible == []
        assert _progress(result, "revenue_1m").progress_percent == Decimal("100.00")

    def test_negative_metric_clamps_to_zero_percent(self):
        records = [ActivityRecord(date=date(2025, 2, 1), profit=Decimal("-500"))]
        as_of = date(2025, 2, 1)
        result = evaluate(aggregate(records, as_of), [], [PROFIT], as_of)
        view = _progress(result, "profit_1k")
        assert view.current_value == Decimal("-500")
        assert view.progress_percent == 0
        assert result.newly_eligible == []

    def test_already_held_trophy_is_never_eligible_again(self):
        as_of = date(2025, 3, 15)
        result = evaluate(aggregate(RECORDS, as_of), [_Award("revenue_1m")], [MILLION], as_of)

        assert result.newly_eligible == []
        view = _progress(result, "revenue_1m")
        assert view.obtained is True
        assert view.obtained_count == 1
        assert view.progress_percent == 100

    def test_progress_lists_every_trophy_in_catalog_order(self):
        as_of = date(2025, 3, 15)
        result = evaluate(aggregate(RECORDS, as_of), [], [MILLION, SPRINT, MONTHLY], as_of)
        assert [p.trophy_id for p in result.progress] == ["revenue_1m", "sprint_90d", "monthly_best"]

    def test_invalid_threshold_is_skipped_and_logged(self, caplog):
        broken = Trophy(id="broken", name="Broken", condition_type="cumulative_revenue", threshold_value=Decimal("0"))
        as_of = date(2025, 3, 15)
        with caplog.at_level(logging.ERROR, logger="podium.trophies.evaluator"):
            result = evaluate(aggregate(RECORDS, as_of), [], [broken, MILLION], as_of)

        assert [p.trophy_id for p in result.progress] == ["revenue_1m"]
        assert "broken" in caplog.text


class TestMonthlyTrophy:
    """The repeatable best-of-month trophy."""

    def test_not_eligible_without_winning_flag(self):
        records = [ActivityRecord(date=date(2025, 2, 10), profit=Decimal("900"))]
        as_of = date(2025, 3, 1)
        result = evaluate(aggregate(records, as_of), [], [MONTHLY], as_of, monthly_period=(2025, 2))

        assert result.newly_eligible == []
        view = _progress(result, "monthly_best")
        assert view.current_value == Decimal("900")
        assert view.progress_percent == 0

    def test_eligible_with_winning_flag(self):
        records = [ActivityRecord(date=date(2025, 2, 10), profit=Decimal("900"))]
        as_of = date(2025, 3, 1)
        result = evaluate(
            aggregate(records, as_of), [], [MONTHLY], as_of, monthly_period=(2025, 2), monthly_best=True
        )

        assert len(result.newly_eligible) == 1
        item = result.newly_eligible[0]
        assert item.period_key == "2025-02"
        assert item.value_achieved == Decimal("900")

    def test_same_month_not_awarded_twice(self):
        as_of = date(2025, 3, 1)
        held = [_Award("monthly_best", period_key="2025-02")]
        result = evaluate(aggregate([], as_of), held, [MONTHLY], as_of, monthly_period=(2025, 2), monthly_best=True)
        assert result.newly_eligible == []

    def test_earlier_month_does_not_block_new_month(self):
        as_of = date(2025, 4, 1)
        held = [
            _Award("monthly_best", period_key="2025-01"),
            _Award("monthly_best", period_key="2025-02", awarded_at=datetime(2025, 3, 1, tzinfo=timezone.utc)),
        ]
        result = evaluate(aggregate([], as_of), held, [MONTHLY], as_of, monthly_period=(2025, 3), monthly_best=True)

        assert [e.period_key for e in result.newly_eligible] == ["2025-03"]
        view = _progress(result, "monthly_best")
        assert view.obtained_count == 2
        assert view.last_obtained_at == datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert view.progress_percent == 100


class TestMetricHelpers:
    def test_calendar_year_uses_configured_year(self):
        annual = Trophy(
            id="annual_2024", name="2024", condition_type="calendar_year_profit",
            threshold_value=Decimal("100"), year=2024,
        )
        records = [
            ActivityRecord(date=date(2024, 6, 1), profit=Decimal("70")),
            ActivityRecord(date=date(2025, 1, 2), profit=Decimal("40")),
        ]
        agg = aggregate(records, date(2025, 2, 1))
        assert metric_value(annual, agg) == Decimal("70")

    def test_progress_percent_rounds_to_two_places(self):
        assert progress_percent(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert progress_percent(Decimal("2"), Decimal("3")) == Decimal("66.67")

    def test_progress_percent_caps_at_hundred(self):
        assert progress_percent(Decimal("300"), Decimal("100")) == Decimal("100")
