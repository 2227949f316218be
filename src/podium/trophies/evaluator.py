"""Eligibility evaluation: progress per trophy and newly earned trophies."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from podium.trophies.aggregator import Aggregates
from podium.trophies.types import (
    CALENDAR_YEAR_PROFIT,
    CUMULATIVE_PROFIT,
    CUMULATIVE_REVENUE,
    MONTHLY_BEST_PROFIT,
    ROLLING_WINDOW_PROFIT,
    ROLLING_WINDOW_REVENUE,
    ZERO,
    EvaluationResult,
    NewlyEligible,
    ProgressView,
    Trophy,
    month_period_key,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
PERCENT_QUANTUM = Decimal("0.01")


class ExistingAward(Protocol):
    trophy_id: str
    period_key: str
    awarded_at: object


def metric_value(
    trophy: Trophy,
    aggregates: Aggregates,
    monthly_period: tuple[int, int] | None = None,
) -> Decimal:
    """Pick the aggregate a trophy is measured against."""
    ctype = trophy.condition_type
    if ctype == CUMULATIVE_REVENUE:
        return aggregates.cumulative_revenue
    if ctype == CUMULATIVE_PROFIT:
        return aggregates.cumulative_profit
    if ctype == ROLLING_WINDOW_REVENUE:
        return aggregates.rolling_revenue(trophy.window_days or 0)
    if ctype == ROLLING_WINDOW_PROFIT:
        return aggregates.rolling_profit(trophy.window_days or 0)
    if ctype == MONTHLY_BEST_PROFIT:
        year, month = monthly_period or (aggregates.as_of.year, aggregates.as_of.month)
        return aggregates.monthly_profit(year, month)
    if ctype == CALENDAR_YEAR_PROFIT:
        return aggregates.year_profit(trophy.year or aggregates.as_of.year)
    # The catalog rejects unknown types before they get here
    logger.error("Unsupported condition_type %r on trophy %s", ctype, trophy.id)
    return ZERO


def progress_percent(current: Decimal, threshold: Decimal) -> Decimal:
    """clamp(100 * current / threshold, 0, 100), two decimal places."""
    raw = HUNDRED * current / threshold
    clamped = min(max(raw, ZERO), HUNDRED)
    return clamped.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def evaluate(
    aggregates: Aggregates,
    existing_awards: Iterable[ExistingAward],
    catalog: Sequence[Trophy],
    as_of: date,
    monthly_period: tuple[int, int] | None = None,
    monthly_best: bool = False,
) -> EvaluationResult:
    """Evaluate every trophy for one participant.

    ``monthly_period`` selects the month the repeatable best-profit trophy is
    measured for (defaults to the month of ``as_of``). ``monthly_best`` is the
    result of the cross-participant comparison for that month: the evaluator
    cannot compute it from one participant's data.
    """
    period = monthly_period or (as_of.year, as_of.month)
    period_key = month_period_key(*period)

    awards_by_trophy: dict[str, list[ExistingAward]] = defaultdict(list)
    for award in existing_awards:
        awards_by_trophy[award.trophy_id].append(award)

    progress: list[ProgressView] = []
    newly_eligible: list[NewlyEligible] = []

    for trophy in catalog:
        held = awards_by_trophy.get(trophy.id, [])
        current = metric_value(trophy, aggregates, period)
        last_obtained = max((a.awarded_at for a in held), default=None)

        if trophy.condition_type == MONTHLY_BEST_PROFIT:
            held_this_period = any(a.period_key == period_key for a in held)
            if monthly_best and not held_this_period:
                newly_eligible.append(
                    NewlyEligible(trophy_id=trophy.id, value_achieved=current, period_key=period_key)
                )
            percent = HUNDRED if held else ZERO
        elif held:
            # Once-only trophy already awarded: terminal, never re-evaluated
            percent = HUNDRED
        else:
            threshold = trophy.threshold_value
            if threshold is None or threshold <= 0:
                logger.error("Trophy %s has invalid threshold %r, skipping", trophy.id, threshold)
                continue
            percent = progress_percent(current, threshold)
            if current >= threshold:
                newly_eligible.append(NewlyEligible(trophy_id=trophy.id, value_achieved=current))

        progress.append(
            ProgressView(
                trophy_id=trophy.id,
                name=trophy.name,
                condition_type=trophy.condition_type,
                threshold_value=trophy.threshold_value,
                current_value=current,
                progress_percent=percent,
                obtained=bool(held),
                obtained_count=len(held),
                last_obtained_at=last_obtained,  # type: ignore[arg-type]
                icon=trophy.icon,
                color=trophy.color,
                description=trophy.description,
            )
        )

    return EvaluationResult(progress=progress, newly_eligible=newly_eligible)
