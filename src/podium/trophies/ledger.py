"""Award ledger: append-only trophy awards with storage-enforced uniqueness."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from podium.database import dialect_insert
from podium.db.models import TrophyAward
from podium.trophies.exceptions import AwardPersistenceError, DuplicateAwardError, UpstreamFetchError
from podium.trophies.types import AwardDraft

logger = logging.getLogger(__name__)


class AwardLedger:
    """Writes and reads ``trophy_awards`` rows. Never updates or deletes."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def award(self, draft: AwardDraft) -> TrophyAward:
        """Insert the award if absent and commit.

        A single INSERT ... ON CONFLICT DO NOTHING RETURNING statement, so two
        concurrent writers can never both succeed. Raises DuplicateAwardError
        when a uniqueness constraint already covers this award, and
        AwardPersistenceError for any other storage failure.
        """
        insert = dialect_insert(self.db)
        stmt = (
            insert(TrophyAward)
            .values(
                participant_id=draft.participant_id,
                trophy_id=draft.trophy_id,
                period_key=draft.period_key,
                awarded_at=datetime.now(timezone.utc),
                awarded_by=draft.awarded_by,
                granted_by=draft.granted_by,
                value_achieved=draft.value_achieved,
            )
            .on_conflict_do_nothing()
            .returning(TrophyAward.id)
        )

        try:
            result = await self.db.execute(stmt)
            award_id = result.scalar_one_or_none()
            if award_id is None:
                raise DuplicateAwardError(draft)
            await self.db.commit()
            record = await self.db.get(TrophyAward, award_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise AwardPersistenceError(draft, e) from e

        logger.info(
            "Awarded trophy %s to %s (period=%s, by=%s, value=%s)",
            draft.trophy_id, draft.participant_id, draft.period_key, draft.awarded_by, draft.value_achieved,
        )
        return record  # type: ignore[return-value]

    async def list_for(self, participant_id: str) -> list[TrophyAward]:
        """All awards for a participant, newest first."""
        try:
            result = await self.db.execute(
                select(TrophyAward)
                .where(TrophyAward.participant_id == participant_id)
                .order_by(TrophyAward.awarded_at.desc(), TrophyAward.id.desc())
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Awards unavailable for {participant_id}: {e}") from e
        return list(result.scalars())

    async def recent(self, limit: int = 50) -> list[TrophyAward]:
        """Most recent awards across all participants."""
        try:
            result = await self.db.execute(
                select(TrophyAward).order_by(TrophyAward.awarded_at.desc(), TrophyAward.id.desc()).limit(limit)
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Recent awards unavailable: {e}") from e
        return list(result.scalars())

    async def summary_by_participant(self) -> dict[str, tuple[int, datetime | None]]:
        """participant_id -> (award count, latest awarded_at)."""
        try:
            result = await self.db.execute(
                select(
                    TrophyAward.participant_id,
                    func.count(TrophyAward.id),
                    func.max(TrophyAward.awarded_at),
                ).group_by(TrophyAward.participant_id)
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Award summary unavailable: {e}") from e
        return {row[0]: (row[1], row[2]) for row in result.all()}

    async def holder_of(self, trophy_id: str, period_key: str, participant_id: str) -> str | None:
        """Who holds ``trophy_id`` for ``period_key``, preferring ``participant_id``."""
        try:
            result = await self.db.execute(
                select(TrophyAward.participant_id)
                .where(TrophyAward.trophy_id == trophy_id, TrophyAward.period_key == period_key)
                .order_by(TrophyAward.participant_id)
            )
        except SQLAlchemyError as e:
            raise UpstreamFetchError(f"Award lookup failed for {trophy_id} ({period_key}): {e}") from e
        holders = list(result.scalars())
        if participant_id in holders:
            return participant_id
        return holders[0] if holders else None
