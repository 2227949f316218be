"""Value types shared by the trophy engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from podium.db.models import ONCE_PERIOD

# --- Condition types ---

CUMULATIVE_REVENUE = "cumulative_revenue"
CUMULATIVE_PROFIT = "cumulative_profit"
ROLLING_WINDOW_REVENUE = "rolling_window_revenue"
ROLLING_WINDOW_PROFIT = "rolling_window_profit"
MONTHLY_BEST_PROFIT = "monthly_best_profit"
CALENDAR_YEAR_PROFIT = "calendar_year_profit"

CONDITION_TYPES = frozenset({
    CUMULATIVE_REVENUE,
    CUMULATIVE_PROFIT,
    ROLLING_WINDOW_REVENUE,
    ROLLING_WINDOW_PROFIT,
    MONTHLY_BEST_PROFIT,
    CALENDAR_YEAR_PROFIT,
})
ROLLING_TYPES = frozenset({ROLLING_WINDOW_REVENUE, ROLLING_WINDOW_PROFIT})
THRESHOLD_TYPES = CONDITION_TYPES - {MONTHLY_BEST_PROFIT}

# --- Award origin ---

AWARDED_BY_AUTO = "auto"
AWARDED_BY_MANUAL = "manual"

ZERO = Decimal("0")


def to_money(value: object) -> Decimal:
    """Coerce a stored or user-supplied amount to an exact Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)  # type: ignore[arg-type]


def month_period_key(year: int, month: int) -> str:
    """'2025-03' style key used by the monthly trophy."""
    return f"{year:04d}-{month:02d}"


def previous_month(as_of: date) -> tuple[int, int]:
    """The calendar month that ended before the month containing as_of."""
    if as_of.month == 1:
        return as_of.year - 1, 12
    return as_of.year, as_of.month - 1


@dataclass(frozen=True)
class ActivityRecord:
    date: date
    revenue: Decimal = ZERO
    profit: Decimal = ZERO


@dataclass(frozen=True)
class Trophy:
    """A validated trophy definition, immutable for one evaluation pass."""

    id: str
    name: str
    condition_type: str
    threshold_value: Decimal | None = None
    window_days: int | None = None
    year: int | None = None
    repeatable: bool = False
    auto_award: bool = True
    sort_order: int = 0
    description: str = ""
    icon: str = ""
    color: str = ""

    @property
    def is_monthly(self) -> bool:
        return self.condition_type == MONTHLY_BEST_PROFIT


@dataclass(frozen=True)
class MonthlyWinner:
    """Outcome of the cross-participant monthly best-profit reduction."""

    year: int
    month: int
    participant_id: str | None
    value: Decimal = ZERO

    @property
    def period_key(self) -> str:
        return month_period_key(self.year, self.month)


@dataclass(frozen=True)
class ProgressView:
    trophy_id: str
    name: str
    condition_type: str
    threshold_value: Decimal | None
    current_value: Decimal
    progress_percent: Decimal
    obtained: bool
    obtained_count: int
    last_obtained_at: datetime | None = None
    icon: str = ""
    color: str = ""
    description: str = ""


@dataclass(frozen=True)
class NewlyEligible:
    trophy_id: str
    value_achieved: Decimal
    period_key: str = ONCE_PERIOD


@dataclass(frozen=True)
class EvaluationResult:
    progress: list[ProgressView] = field(default_factory=list)
    newly_eligible: list[NewlyEligible] = field(default_factory=list)


@dataclass(frozen=True)
class AwardDraft:
    """Award about to be written to the ledger."""

    participant_id: str
    trophy_id: str
    awarded_by: str
    value_achieved: Decimal
    period_key: str = ONCE_PERIOD
    granted_by: str | None = None


@dataclass
class SweepResult:
    awarded_count: int = 0
    skipped_count: int = 0
    failed_participants: list[str] = field(default_factory=list)
    monthly_winner: MonthlyWinner | None = None


@dataclass(frozen=True)
class ParticipantSummary:
    """Admin overview row: recent activity and award totals."""

    participant_id: str
    full_name: str
    window_revenue: Decimal
    window_profit: Decimal
    award_count: int
    last_awarded_at: datetime | None
