"""Shared test fixtures.

Tests run against an in-memory SQLite database (aiosqlite) so the ledger's
conditional insert and the uniqueness constraints are exercised for real.
"""

from __future__ import annotations

import os

os.environ.setdefault("PODIUM_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PODIUM_REDIS_URL", "")
os.environ.setdefault("PODIUM_LOG_FORMAT", "console")

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from podium.config import Settings, get_settings
from podium.database import close_db, get_engine, get_session_factory, init_db
from podium.db.base import Base
from podium.trophies.service import AwardingService


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh schema per test."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_session_factory()
    await close_db()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Direct session for seeding and assertions."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def service(session_factory) -> AwardingService:
    # Sequential sweeps: the in-memory database shares a single connection.
    # Months settle on the 1st so sweep dates in tests read naturally.
    return AwardingService(session_factory, None, Settings(sweep_concurrency=1, monthly_settle_delay_days=0))


@pytest_asyncio.fixture
async def client(service: AwardingService) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the awarding service wired to the test database."""
    from podium.dependencies import get_awarding_service
    from podium.main import create_app

    app = create_app()
    app.dependency_overrides[get_awarding_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

