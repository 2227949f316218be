"""Trophy sweep arq worker.

Import path for the arq CLI: arq podium.trophies.worker.TrophyWorkerSettings

Runs the automatic sweep daily. Once ``monthly_settle_delay_days`` have passed
in a new month, a run that loaded every participant also settles the best
performer of the previous month; once a month has a holder, later runs leave
it alone.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import redis.asyncio as aioredis
from arq import cron
from arq.connections import RedisSettings

from podium.config import get_settings
from podium.database import close_db, get_session_factory, init_db
from podium.middleware.logging import setup_logging
from podium.trophies.service import AwardingService

logger = logging.getLogger(__name__)


async def trophy_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB + Redis connections on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)

    ctx["redis_pub"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
    )
    ctx["awarding"] = AwardingService(get_session_factory(), ctx["redis_pub"], settings)
    logger.info("Trophy worker started")


async def trophy_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    redis_client: aioredis.Redis | None = ctx.get("redis_pub")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Trophy worker shut down")


async def trophy_sweep(ctx: dict, as_of: str | None = None) -> int:  # type: ignore[type-arg]
    """Run the automatic sweep. ``as_of`` is an ISO date, defaulting to today (UTC)."""
    service: AwardingService = ctx["awarding"]
    day = date.fromisoformat(as_of) if as_of else datetime.now(timezone.utc).date()
    result = await service.run_automatic_sweep(day)
    if result.failed_participants:
        logger.warning(
            "Trophy sweep %s finished with %d failed participants: %s",
            day, len(result.failed_participants), result.failed_participants,
        )
    return result.awarded_count


async def scheduled_trophy_sweep(ctx: dict) -> int:  # type: ignore[type-arg]
    """Cron entry: sweep as of the current UTC date."""
    return await trophy_sweep(ctx)


_settings = get_settings()


class TrophyWorkerSettings:
    """arq worker settings for the trophy sweep."""

    functions = [trophy_sweep]
    cron_jobs = [
        cron(scheduled_trophy_sweep, hour=_settings.daily_sweep_hour_utc, minute=5, unique=True),
    ]
    redis_settings = RedisSettings.from_dsn(_settings.arq_redis_url)
    on_startup = trophy_startup
    on_shutdown = trophy_shutdown
    max_jobs = 1
    job_timeout = 1800
