"""Optional Redis client used for trophy award broadcasts.

Redis is not required to evaluate or award trophies: with no
``PODIUM_REDIS_URL`` the service runs without broadcasts and ``/ready``
reports Redis as disabled.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """Shared client, or None when broadcasts are not configured."""
    return _client


async def redis_status() -> str:
    """'ok', 'disabled', or 'error: ...' for the readiness probe."""
    if _client is None:
        return "disabled"
    try:
        await _client.ping()
    except redis.RedisError as exc:
        return f"error: {exc}"
    return "ok"
