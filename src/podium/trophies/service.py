"""Awarding service: aggregate -> evaluate -> persist, in sweep or manual mode."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from podium.config import Settings, get_settings
from podium.db.models import ONCE_PERIOD, TrophyAward
from podium.trophies.aggregator import Aggregates, aggregate
from podium.trophies.catalog import TrophyCatalog, load_catalog
from podium.trophies.evaluator import evaluate, metric_value
from podium.trophies.exceptions import (
    AwardPersistenceError,
    DuplicateAwardError,
    ManualGrantConflict,
    UnknownParticipantError,
)
from podium.trophies.ledger import AwardLedger
from podium.trophies.store import ActivityStore
from podium.trophies.types import (
    AWARDED_BY_AUTO,
    AWARDED_BY_MANUAL,
    AwardDraft,
    MonthlyWinner,
    ParticipantSummary,
    ProgressView,
    SweepResult,
    Trophy,
    month_period_key,
    previous_month,
    to_money,
)

logger = logging.getLogger(__name__)


def _today() -> date:
    return datetime.now(timezone.utc).date()


def select_monthly_winner(profits: Mapping[str, Decimal], year: int, month: int) -> MonthlyWinner:
    """Single best monthly profit across participants.

    Ties go to the lowest participant id so the outcome never depends on the
    order participants were processed in. A month whose best profit is not
    strictly positive has no winner.
    """
    winner_id: str | None = None
    best = Decimal("0")
    for participant_id in sorted(profits):
        value = profits[participant_id]
        if value > best:
            winner_id, best = participant_id, value
    return MonthlyWinner(year=year, month=month, participant_id=winner_id, value=best)


@dataclass
class _Snapshot:
    aggregates: Aggregates
    awards: list[TrophyAward]


class AwardingService:
    """Entry points for progress display, the automatic sweep and manual grants.

    Every entry point takes an explicit ``as_of`` day; only when it is omitted
    is the current UTC date used.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: aioredis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.redis = redis
        self.settings = settings or get_settings()

    # ── Progress (read-only) ──

    async def get_progress(self, participant_id: str, as_of: date | None = None) -> list[ProgressView]:
        """Progress for every trophy in the catalog. Never writes."""
        as_of = as_of or _today()
        async with self.session_factory() as db:
            store = ActivityStore(db)
            if not await store.participant_exists(participant_id):
                raise UnknownParticipantError(participant_id)
            catalog = await load_catalog(db)
            records = await store.fetch_records(participant_id, (None, as_of))
            awards = await AwardLedger(db).list_for(participant_id)

        result = evaluate(aggregate(records, as_of), awards, catalog.all(), as_of)
        return result.progress

    async def list_awards(self, participant_id: str) -> list[TrophyAward]:
        async with self.session_factory() as db:
            return await AwardLedger(db).list_for(participant_id)

    async def recent_awards(self, limit: int | None = None) -> list[TrophyAward]:
        async with self.session_factory() as db:
            return await AwardLedger(db).recent(limit or self.settings.recent_awards_limit)

    async def catalog(self) -> TrophyCatalog:
        async with self.session_factory() as db:
            return await load_catalog(db)

    # ── Automatic sweep ──

    async def run_automatic_sweep(self, as_of: date | None = None) -> SweepResult:
        """Award every newly satisfied auto-award trophy to every active participant.

        Three phases: aggregate each participant concurrently, reduce once to
        the best performer of the month that just ended, then persist awards
        concurrently. A participant whose fetch or write fails is logged and
        reported in ``failed_participants``; the others carry on. Re-running
        with no new activity awards nothing.

        The monthly trophy is only settled when every active participant
        loaded and the settle delay has passed; otherwise the month is left to
        a later sweep, since the first recorded holder is final.
        """
        as_of = as_of or _today()
        result = SweepResult()

        async with self.session_factory() as db:
            catalog = await load_catalog(db)
            participant_ids = await ActivityStore(db).fetch_all_active_participant_ids()

        trophies = catalog.auto_awardable()
        if not trophies or not participant_ids:
            logger.info("Trophy sweep as of %s: nothing to evaluate", as_of)
            return result

        semaphore = asyncio.Semaphore(max(1, self.settings.sweep_concurrency))
        snapshots = await asyncio.gather(
            *(self._snapshot(semaphore, pid, as_of) for pid in participant_ids)
        )

        ready: dict[str, _Snapshot] = {}
        for pid, snapshot in zip(participant_ids, snapshots):
            if snapshot is None:
                result.failed_participants.append(pid)
            else:
                ready[pid] = snapshot

        monthly_period = previous_month(as_of)
        if any(t.is_monthly for t in trophies) and self._can_settle_month(as_of, monthly_period, result):
            result.monthly_winner = select_monthly_winner(
                {pid: s.aggregates.monthly_profit(*monthly_period) for pid, s in ready.items()},
                *monthly_period,
            )
        winner_id = result.monthly_winner.participant_id if result.monthly_winner else None

        outcomes = await asyncio.gather(
            *(
                self._award_participant(semaphore, pid, snapshot, trophies, as_of, monthly_period, pid == winner_id)
                for pid, snapshot in ready.items()
            )
        )
        for pid, (awarded, skipped, failed) in zip(ready, outcomes):
            result.awarded_count += awarded
            result.skipped_count += skipped
            if failed:
                result.failed_participants.append(pid)

        logger.info(
            "Trophy sweep as of %s: %d awarded, %d already held, %d failed of %d participants",
            as_of, result.awarded_count, result.skipped_count, len(result.failed_participants), len(participant_ids),
        )
        return result

    def _can_settle_month(self, as_of: date, period: tuple[int, int], result: SweepResult) -> bool:
        period_key = month_period_key(*period)
        if as_of.day <= self.settings.monthly_settle_delay_days:
            logger.info(
                "Sweep: monthly trophy for %s deferred until day %d of the month",
                period_key, self.settings.monthly_settle_delay_days + 1,
            )
            return False
        if result.failed_participants:
            logger.warning(
                "Sweep: monthly trophy for %s deferred, %d participants could not be loaded",
                period_key, len(result.failed_participants),
            )
            return False
        return True

    async def _snapshot(self, semaphore: asyncio.Semaphore, participant_id: str, as_of: date) -> _Snapshot | None:
        async with semaphore:
            try:
                async with self.session_factory() as db:
                    records = await ActivityStore(db).fetch_records(participant_id, (None, as_of))
                    awards = await AwardLedger(db).list_for(participant_id)
            except Exception:
                logger.exception("Sweep: failed to load activity for %s", participant_id)
                return None
        return _Snapshot(aggregates=aggregate(records, as_of), awards=awards)

    async def _award_participant(
        self,
        semaphore: asyncio.Semaphore,
        participant_id: str,
        snapshot: _Snapshot,
        trophies: list[Trophy],
        as_of: date,
        monthly_period: tuple[int, int],
        monthly_best: bool,
    ) -> tuple[int, int, bool]:
        """Persist one participant's new awards: (awarded, skipped, failed).

        Each award commits on its own, so awards written before a failure are
        still counted.
        """
        evaluation = evaluate(
            snapshot.aggregates,
            snapshot.awards,
            trophies,
            as_of,
            monthly_period=monthly_period,
            monthly_best=monthly_best,
        )
        if not evaluation.newly_eligible:
            return 0, 0, False

        by_id = {t.id: t for t in trophies}
        awarded = skipped = 0
        failed = False
        async with semaphore:
            try:
                async with self.session_factory() as db:
                    ledger = AwardLedger(db)
                    for item in evaluation.newly_eligible:
                        draft = AwardDraft(
                            participant_id=participant_id,
                            trophy_id=item.trophy_id,
                            awarded_by=AWARDED_BY_AUTO,
                            value_achieved=item.value_achieved,
                            period_key=item.period_key,
                        )
                        try:
                            await ledger.award(draft)
                        except DuplicateAwardError:
                            logger.info(
                                "Sweep: %s already holds %s (%s), skipping",
                                participant_id, item.trophy_id, item.period_key,
                            )
                            skipped += 1
                            continue
                        except AwardPersistenceError:
                            logger.exception(
                                "Sweep: failed to persist %s (%s) for %s",
                                item.trophy_id, item.period_key, participant_id,
                            )
                            failed = True
                            continue
                        awarded += 1
                        await self._broadcast(draft, by_id[item.trophy_id])
            except Exception:
                logger.exception("Sweep: failed to persist awards for %s", participant_id)
                failed = True
        return awarded, skipped, failed

    # ── Manual grant ──

    async def manual_award(
        self,
        participant_id: str,
        trophy_id: str,
        value_achieved: Decimal | int | str | None = None,
        granted_by: str | None = None,
        as_of: date | None = None,
        period: tuple[int, int] | None = None,
    ) -> TrophyAward:
        """Grant a trophy directly, skipping eligibility.

        The ledger invariant still holds: granting a trophy the participant
        already has, or a month another participant already holds, raises
        ManualGrantConflict. For the monthly trophy the
        period defaults to the month that ended before ``as_of``. Without an
        explicit ``value_achieved`` the participant's current metric is
        recorded.
        """
        as_of = as_of or _today()
        async with self.session_factory() as db:
            store = ActivityStore(db)
            catalog = await load_catalog(db)
            trophy = catalog.get(trophy_id)
            if not await store.participant_exists(participant_id):
                raise UnknownParticipantError(participant_id)

            monthly_period = period or previous_month(as_of)
            period_key = month_period_key(*monthly_period) if trophy.is_monthly else ONCE_PERIOD

            if value_achieved is None:
                records = await store.fetch_records(participant_id, (None, as_of))
                value = metric_value(trophy, aggregate(records, as_of), monthly_period)
            else:
                value = to_money(value_achieved)

            draft = AwardDraft(
                participant_id=participant_id,
                trophy_id=trophy.id,
                awarded_by=AWARDED_BY_MANUAL,
                value_achieved=value,
                period_key=period_key,
                granted_by=granted_by,
            )
            ledger = AwardLedger(db)
            try:
                record = await ledger.award(draft)
            except DuplicateAwardError as e:
                holder_id = await ledger.holder_of(trophy.id, period_key, participant_id)
                logger.warning(
                    "Manual grant of %s (%s) to %s rejected: held by %s, requested by %s",
                    trophy_id, period_key, participant_id, holder_id, granted_by,
                )
                raise ManualGrantConflict(participant_id, trophy_id, period_key, holder_id) from e

        await self._broadcast(draft, trophy)
        return record

    # ── Admin overview ──

    async def participant_overview(self, as_of: date | None = None) -> list[ParticipantSummary]:
        """Per active participant: activity over the overview window and award totals."""
        as_of = as_of or _today()
        window_days = self.settings.rolling_window_days
        start = as_of - timedelta(days=window_days)

        async with self.session_factory() as db:
            store = ActivityStore(db)
            participants = await store.fetch_active_participants()
            summary = await AwardLedger(db).summary_by_participant()
            rows = []
            for pid, full_name in participants:
                aggregates = aggregate(await store.fetch_records(pid, (start, as_of)), as_of)
                count, last_awarded = summary.get(pid, (0, None))
                rows.append(
                    ParticipantSummary(
                        participant_id=pid,
                        full_name=full_name,
                        window_revenue=aggregates.rolling_revenue(window_days),
                        window_profit=aggregates.rolling_profit(window_days),
                        award_count=count,
                        last_awarded_at=last_awarded,
                    )
                )
        return rows

    # ── Notifications ──

    async def _broadcast(self, draft: AwardDraft, trophy: Trophy) -> None:
        """Best-effort pub/sub message so connected clients can celebrate."""
        if self.redis is None:
            return
        try:
            await self.redis.publish(
                self.settings.award_broadcast_channel,
                json.dumps({
                    "participant_id": draft.participant_id,
                    "trophy_id": trophy.id,
                    "trophy_name": trophy.name,
                    "icon": trophy.icon,
                    "period_key": draft.period_key,
                    "awarded_by": draft.awarded_by,
                    "value_achieved": str(draft.value_achieved),
                }),
            )
        except Exception:
            logger.warning("Failed to publish trophy_awarded notification", exc_info=True)
