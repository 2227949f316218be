"""Activity store adapter over the ``daily_results`` and ``participants`` tables."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podium.db.models import DailyResult, Participant
from podium.trophies.exceptions import UpstreamFetchError
from podium.trophies.types import ActivityRecord, to_money


class ActivityStore:
    """Read-only access to participants and their dated activity records."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def fetch_records(
        self,
        participant_id: str,
        date_range: tuple[date | None, date | None] = (None, None),
    ) -> list[ActivityRecord]:
        """Records for one participant, oldest first. Range bounds are inclusive."""
        start, end = date_range
        stmt = select(DailyResult).where(DailyResult.participant_id == participant_id)
        if start is not None:
            stmt = stmt.where(DailyResult.result_date >= start)
        if end is not None:
            stmt = stmt.where(DailyResult.result_date <= end)
        stmt = stmt.order_by(DailyResult.result_date)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Activity records unavailable for {participant_id}: {e}") from e

        return [
            ActivityRecord(date=row.result_date, revenue=to_money(row.revenue), profit=to_money(row.profit))
            for row in result.scalars()
        ]

    async def fetch_all_active_participant_ids(self) -> list[str]:
        """Active participant ids in ascending order."""
        try:
            result = await self.db.execute(
                select(Participant.id).where(Participant.is_active.is_(True)).order_by(Participant.id)
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Participant list unavailable: {e}") from e
        return list(result.scalars())

    async def fetch_active_participants(self) -> list[tuple[str, str]]:
        """(id, full_name) of active participants, ordered by id."""
        try:
            result = await self.db.execute(
                select(Participant.id, Participant.full_name)
                .where(Participant.is_active.is_(True))
                .order_by(Participant.id)
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Participant list unavailable: {e}") from e
        return [(row[0], row[1]) for row in result.all()]

    async def participant_exists(self, participant_id: str) -> bool:
        try:
            result = await self.db.execute(select(Participant.id).where(Participant.id == participant_id))
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Participant lookup failed for {participant_id}: {e}") from e
        return result.scalar_one_or_none() is not None
