"""Redis client for the shared progress cache.

REDIS_URL unset (local dev, tests) leaves redis_pool as None and
lms.services.cache picks the in-memory cache instead.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from lms.core.config import SETTINGS

logger = logging.getLogger(__name__)

redis_pool: aioredis.Redis | None = (  # type: ignore[type-arg]
    aioredis.from_url(SETTINGS.redis_url, decode_responses=True, max_connections=20)
    if SETTINGS.redis_url
    else None
)


@asynccontextmanager
async def lifespan_redis():
    """Ping Redis at startup, close the pool at shutdown.

    Progress reads fall through to the store when the cache is down, so an
    unreachable Redis is logged and the app still starts.
    """
    if redis_pool is None:
        logger.info("REDIS_URL not set, progress cache is in-memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis reachable for progress cache")
    except (RedisError, OSError):
        logger.exception("Redis unreachable at startup")

    try:
        yield
    finally:
        await redis_pool.aclose()
        logger.info("Redis pool closed")
