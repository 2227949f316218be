"""Trophy API endpoints."""

from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from podium.auth.dependencies import get_current_participant_id, require_admin
from podium.db.models import TrophyAward
from podium.dependencies import get_awarding_service
from podium.trophies.exceptions import (
    ManualGrantConflict,
    UnknownParticipantError,
    UnknownTrophyError,
    UpstreamFetchError,
)
from podium.trophies.schemas import (
    AwardListResponse,
    AwardResponse,
    ManualAwardRequest,
    MonthlyWinnerResponse,
    ParticipantOverviewResponse,
    ParticipantProgressResponse,
    ParticipantSummaryResponse,
    SweepRequest,
    SweepResponse,
    TrophyCatalogResponse,
    TrophyProgressResponse,
    TrophyResponse,
)
from podium.trophies.service import AwardingService

router = APIRouter(prefix="/api/v1", tags=["Trophies"])


def _award_response(award: TrophyAward) -> AwardResponse:
    return AwardResponse(
        id=award.id,
        participant_id=award.participant_id,
        participant_name=award.participant.full_name if award.participant else None,
        trophy_id=award.trophy_id,
        trophy_name=award.trophy.name if award.trophy else None,
        trophy_icon=award.trophy.icon if award.trophy else None,
        period_key=award.period_key,
        awarded_at=award.awarded_at,
        awarded_by=award.awarded_by,
        granted_by=award.granted_by,
        value_achieved=award.value_achieved,
    )


async def _progress(service: AwardingService, participant_id: str, as_of: date | None) -> ParticipantProgressResponse:
    as_of = as_of or datetime.now(timezone.utc).date()
    try:
        views = await service.get_progress(participant_id, as_of)
    except UnknownParticipantError as e:
        raise HTTPException(status_code=404, detail="Participant not found") from e
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail="Trophy data temporarily unavailable") from e

    return ParticipantProgressResponse(
        participant_id=participant_id,
        as_of=as_of,
        trophies=[
            TrophyProgressResponse(
                trophy_id=v.trophy_id,
                name=v.name,
                description=v.description,
                icon=v.icon,
                color=v.color,
                condition_type=v.condition_type,
                threshold_value=v.threshold_value,
                current_value=v.current_value,
                progress_percent=v.progress_percent,
                obtained=v.obtained,
                obtained_count=v.obtained_count,
                last_obtained_at=v.last_obtained_at,
            )
            for v in views
        ],
    )


# ── Participant endpoints ──


@router.get("/trophies", response_model=TrophyCatalogResponse)
async def list_trophies(service: AwardingService = Depends(get_awarding_service)):
    """Active, valid trophy definitions in display order."""
    try:
        catalog = await service.catalog()
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail="Trophy catalog temporarily unavailable") from e

    return TrophyCatalogResponse(
        trophies=[
            TrophyResponse(
                id=t.id,
                name=t.name,
                description=t.description,
                icon=t.icon,
                color=t.color,
                condition_type=t.condition_type,
                threshold_value=t.threshold_value,
                window_days=t.window_days,
                year=t.year,
                repeatable=t.repeatable,
                auto_award=t.auto_award,
            )
            for t in catalog.all()
        ]
    )


@router.get("/participants/me/trophies", response_model=ParticipantProgressResponse)
async def get_my_trophies(
    as_of: date | None = Query(None),
    participant_id: str = Depends(get_current_participant_id),
    service: AwardingService = Depends(get_awarding_service),
):
    """Progress towards every trophy for the caller."""
    return await _progress(service, participant_id, as_of)


@router.get("/participants/me/awards", response_model=AwardListResponse)
async def get_my_awards(
    participant_id: str = Depends(get_current_participant_id),
    service: AwardingService = Depends(get_awarding_service),
):
    """Caller's award history, newest first."""
    awards = await service.list_awards(participant_id)
    return AwardListResponse(awards=[_award_response(a) for a in awards], total=len(awards))


# ── Admin endpoints ──


@router.get("/participants/{participant_id}/trophies", response_model=ParticipantProgressResponse)
async def get_participant_trophies(
    participant_id: str,
    as_of: date | None = Query(None),
    _admin: str = Depends(require_admin),
    service: AwardingService = Depends(get_awarding_service),
):
    """Progress for any participant."""
    return await _progress(service, participant_id, as_of)


@router.post("/admin/trophies/sweep", response_model=SweepResponse)
async def run_sweep(
    body: SweepRequest | None = None,
    _admin: str = Depends(require_admin),
    service: AwardingService = Depends(get_awarding_service),
):
    """Run the automatic award sweep now."""
    try:
        result = await service.run_automatic_sweep(body.as_of if body else None)
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail="Trophy data temporarily unavailable") from e

    winner = result.monthly_winner
    return SweepResponse(
        awarded_count=result.awarded_count,
        skipped_count=result.skipped_count,
        failed_participants=result.failed_participants,
        monthly_winner=MonthlyWinnerResponse(
            period=winner.period_key,
            participant_id=winner.participant_id,
            value=winner.value,
        ) if winner else None,
    )


@router.post("/admin/trophies/awards", response_model=AwardResponse, status_code=201)
async def grant_trophy(
    body: ManualAwardRequest,
    admin_id: str = Depends(require_admin),
    service: AwardingService = Depends(get_awarding_service),
):
    """Grant a trophy by hand. 409 when the participant already holds it."""
    if (body.year is None) != (body.month is None):
        raise HTTPException(status_code=422, detail="year and month must be given together")
    period = (body.year, body.month) if body.year is not None and body.month is not None else None

    try:
        award = await service.manual_award(
            body.participant_id,
            body.trophy_id,
            value_achieved=body.value_achieved,
            granted_by=admin_id,
            period=period,
        )
    except UnknownTrophyError as e:
        raise HTTPException(status_code=404, detail="Trophy not found") from e
    except UnknownParticipantError as e:
        raise HTTPException(status_code=404, detail="Participant not found") from e
    except ManualGrantConflict as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except UpstreamFetchError as e:
        raise HTTPException(status_code=503, detail="Trophy data temporarily unavailable") from e

    return _award_response(award)


@router.get("/admin/trophies/awards/recent", response_model=AwardListResponse)
async def list_recent_awards(
    limit: int = Query(50, ge=1, le=200),
    _admin: str = Depends(require_admin),
    service: AwardingService = Depends(get_awarding_service),
):
    """Latest awards across all participants."""
    awards = await service.recent_awards(limit)
    return AwardListResponse(awards=[_award_response(a) for a in awards], total=len(awards))


@router.get("/admin/trophies/participants", response_model=ParticipantOverviewResponse)
async def participant_overview(
    as_of: date | None = Query(None),
    _admin: str = Depends(require_admin),
    service: AwardingService = Depends(get_awarding_service),
):
    """Per-participant recent activity and trophy totals."""
    rows = await service.participant_overview(as_of)
    return ParticipantOverviewResponse(
        window_days=service.settings.rolling_window_days,
        participants=[
            ParticipantSummaryResponse(
                participant_id=r.participant_id,
                full_name=r.full_name,
                window_revenue=r.window_revenue,
                window_profit=r.window_profit,
                award_count=r.award_count,
                last_awarded_at=r.last_awarded_at,
            )
            for r in rows
        ],
    )
