"""ORM models for the trophy engine tables.

Tables are created by the Alembic migrations in ``alembic/versions``; the
definitions here must stay in step with them.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from podium.db.base import Base

MONEY = Numeric(16, 2)

# period_key for trophies that can only be earned once
ONCE_PERIOD = "once"


# ---------------------------------------------------------------------------
# Participants & activity
# ---------------------------------------------------------------------------


class Participant(Base):
    """Tracked participant. Identity is issued by the external auth provider."""

    __tablename__ = "participants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(128), nullable=False, server_default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class DailyResult(Base):
    """One activity record per participant per calendar date."""

    __tablename__ = "daily_results"
    __table_args__ = (
        UniqueConstraint("participant_id", "result_date", name="uq_daily_results_participant_date"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    participant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    result_date: Mapped[date] = mapped_column(Date, nullable=False)
    revenue: Mapped[Decimal] = mapped_column(MONEY, nullable=False, server_default="0")
    profit: Mapped[Decimal] = mapped_column(MONEY, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Trophies
# ---------------------------------------------------------------------------


class TrophyDefinition(Base):
    """Admin-managed trophy catalog entry. Validated at load time, not here."""

    __tablename__ = "trophies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    icon: Mapped[str] = mapped_column(String(16), nullable=False, server_default="")
    color: Mapped[str] = mapped_column(String(16), nullable=False, server_default="")
    condition_type: Mapped[str] = mapped_column(String(32), nullable=False)
    threshold_value: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    window_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    repeatable: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    auto_award: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class TrophyAward(Base):
    """Append-only award ledger row.

    UNIQUE(participant_id, trophy_id, period_key) covers both the once-only
    trophies (period_key='once') and the monthly one (period_key='YYYY-MM').
    The partial index limits a monthly trophy to a single holder per month.
    """

    __tablename__ = "trophy_awards"
    __table_args__ = (
        UniqueConstraint(
            "participant_id", "trophy_id", "period_key", name="uq_trophy_awards_participant_trophy_period"
        ),
        Index(
            "uq_trophy_awards_trophy_month",
            "trophy_id",
            "period_key",
            unique=True,
            postgresql_where=text("period_key <> 'once'"),
            sqlite_where=text("period_key <> 'once'"),
        ),
        Index("idx_trophy_awards_awarded_at", "awarded_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    participant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    trophy_id: Mapped[str] = mapped_column(String(64), ForeignKey("trophies.id"), nullable=False)
    period_key: Mapped[str] = mapped_column(String(16), nullable=False, server_default=ONCE_PERIOD)
    awarded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    awarded_by: Mapped[str] = mapped_column(String(8), nullable=False)
    granted_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    value_achieved: Mapped[Decimal] = mapped_column(MONEY, nullable=False, server_default="0")

    trophy: Mapped[TrophyDefinition] = relationship("TrophyDefinition", lazy="joined")
    participant: Mapped[Participant] = relationship("Participant", lazy="joined")
