"""Ledger uniqueness and the default catalog seed."""

from decimal import Decimal

import pytest

from factories import add_participant, add_trophy
from podium.trophies.catalog import load_catalog
from podium.trophies.exceptions import DuplicateAwardError
from podium.trophies.ledger import AwardLedger
from podium.trophies.seed import TROPHY_SEED_DATA, seed_trophies
from podium.trophies.types import AwardDraft


def _draft(participant_id: str, trophy_id: str, period_key: str = "once") -> AwardDraft:
    return AwardDraft(
        participant_id=participant_id,
        trophy_id=trophy_id,
        awarded_by="auto",
        value_achieved=Decimal("1"),
        period_key=period_key,
    )


class TestAwardLedger:
    @pytest.mark.asyncio
    async def test_award_returns_stored_row(self, db_session):
        await add_participant(db_session, "alice")
        await add_trophy(db_session, "revenue_1m", "cumulative_revenue", threshold_value=1_000_000)

        award = await AwardLedger(db_session).award(_draft("alice", "revenue_1m"))

        assert award.id is not None
        assert award.participant_id == "alice"
        assert award.awarded_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_once_award_is_rejected(self, db_session):
        await add_participant(db_session, "alice")
        await add_trophy(db_session, "revenue_1m", "cumulative_revenue", threshold_value=1_000_000)
        ledger = AwardLedger(db_session)
        await ledger.award(_draft("alice", "revenue_1m"))

        with pytest.raises(DuplicateAwardError):
            await ledger.award(_draft("alice", "revenue_1m"))

        assert len(await ledger.list_for("alice")) == 1

    @pytest.mark.asyncio
    async def test_one_monthly_holder_per_period(self, db_session):
        await add_participant(db_session, "alice")
        await add_participant(db_session, "bob")
        await add_trophy(db_session, "monthly_best", "monthly_best_profit")
        ledger = AwardLedger(db_session)
        await ledger.award(_draft("alice", "monthly_best", "2025-02"))

        with pytest.raises(DuplicateAwardError):
            await ledger.award(_draft("bob", "monthly_best", "2025-02"))

        await ledger.award(_draft("bob", "monthly_best", "2025-03"))
        await ledger.award(_draft("alice", "monthly_best", "2025-04"))
        assert len(await ledger.list_for("alice")) == 2

    @pytest.mark.asyncio
    async def test_once_trophies_can_be_held_by_many(self, db_session):
        await add_participant(db_session, "alice")
        await add_participant(db_session, "bob")
        await add_trophy(db_session, "revenue_1m", "cumulative_revenue", threshold_value=1_000_000)
        ledger = AwardLedger(db_session)

        await ledger.award(_draft("alice", "revenue_1m"))
        await ledger.award(_draft("bob", "revenue_1m"))

        summary = await ledger.summary_by_participant()
        assert {pid: count for pid, (count, _) in summary.items()} == {"alice": 1, "bob": 1}

    @pytest.mark.asyncio
    async def test_recent_is_limited(self, db_session):
        await add_participant(db_session, "alice")
        await add_trophy(db_session, "monthly_best", "monthly_best_profit")
        ledger = AwardLedger(db_session)
        for month in range(1, 6):
            await ledger.award(_draft("alice", "monthly_best", f"2025-{month:02d}"))

        recent = await ledger.recent(3)

        assert len(recent) == 3
        assert recent[0].period_key == "2025-05"


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session):
        first = await seed_trophies(db_session)
        second = await seed_trophies(db_session)

        assert first == len(TROPHY_SEED_DATA)
        assert second == 0

    @pytest.mark.asyncio
    async def test_seeded_catalog_is_valid(self, db_session):
        await seed_trophies(db_session)

        catalog = await load_catalog(db_session)

        assert len(catalog) == len(TROPHY_SEED_DATA)
        assert catalog.all()[-1].id == "monthly_best"
