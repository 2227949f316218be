"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from podium.config import get_settings
from podium.database import close_db, get_session, init_db
from podium.health.router import router as health_router
from podium.middleware import setup_middleware
from podium.redis_client import close_redis, init_redis
from podium.trophies.router import router as trophies_router
from podium.trophies.seed import seed_trophies

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)

    # Seed the default catalog (idempotent, never overwrites admin edits)
    try:
        async for db in get_session():
            await seed_trophies(db)
            break
    except Exception:
        logger.warning("Trophy seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Podium API",
        description="Trophy evaluation and awarding engine",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(trophies_router)

    return app


app = create_app()
