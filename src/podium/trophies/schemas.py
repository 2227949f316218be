"""Pydantic request/response models for trophy endpoints."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# --- Catalog ---


class TrophyResponse(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    condition_type: str
    threshold_value: Decimal | None = None
    window_days: int | None = None
    year: int | None = None
    repeatable: bool = False
    auto_award: bool = True


class TrophyCatalogResponse(BaseModel):
    trophies: list[TrophyResponse]


# --- Progress ---


class TrophyProgressResponse(BaseModel):
    trophy_id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    condition_type: str
    threshold_value: Decimal | None = None
    current_value: Decimal
    progress_percent: Decimal
    obtained: bool
    obtained_count: int
    last_obtained_at: datetime | None = None


class ParticipantProgressResponse(BaseModel):
    participant_id: str
    as_of: date
    trophies: list[TrophyProgressResponse]


# --- Awards ---


class AwardResponse(BaseModel):
    id: int
    participant_id: str
    participant_name: str | None = None
    trophy_id: str
    trophy_name: str | None = None
    trophy_icon: str | None = None
    period_key: str
    awarded_at: datetime
    awarded_by: str
    granted_by: str | None = None
    value_achieved: Decimal


class AwardListResponse(BaseModel):
    awards: list[AwardResponse]
    total: int


class ManualAwardRequest(BaseModel):
    participant_id: str = Field(min_length=1, max_length=64)
    trophy_id: str = Field(min_length=1, max_length=64)
    value_achieved: Decimal | None = None
    year: int | None = Field(default=None, ge=2000, le=2100)
    month: int | None = Field(default=None, ge=1, le=12)


# --- Sweep ---


class SweepRequest(BaseModel):
    as_of: date | None = None


class MonthlyWinnerResponse(BaseModel):
    period: str
    participant_id: str | None = None
    value: Decimal


class SweepResponse(BaseModel):
    awarded_count: int
    skipped_count: int
    failed_participants: list[str] = []
    monthly_winner: MonthlyWinnerResponse | None = None


# --- Admin overview ---


class ParticipantSummaryResponse(BaseModel):
    participant_id: str
    full_name: str
    window_revenue: Decimal
    window_profit: Decimal
    award_count: int
    last_awarded_at: datetime | None = None


class ParticipantOverviewResponse(BaseModel):
    window_days: int
    participants: list[ParticipantSummaryResponse]
