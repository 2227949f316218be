"""Shared FastAPI dependencies."""

from podium.config import get_settings
from podium.database import get_session_factory
from podium.redis_client import get_redis
from podium.trophies.service import AwardingService


def get_awarding_service() -> AwardingService:
    """Awarding service bound to the app-wide session factory and Redis pool."""
    return AwardingService(get_session_factory(), get_redis(), get_settings())
