"""Progress read cache.

ProgressService reads through it and deletes the learner's key after
every successful write:

  GET   progress:{learner}:{course}  hit → serve, miss → store → SETEX
  write store ok                     → DEL key
  write store failed                 → key untouched (nothing changed)

Entries expire after PROGRESS_CACHE_TTL seconds, so a lost DEL only
delays a change instead of hiding it.  The cache is an optimisation: a
Redis error is logged and treated as a miss, never surfaced to a learner.
"""

from __future__ import annotations

import logging
from typing import Protocol

from redis.exceptions import RedisError

from lms.db.redis import redis_pool

logger = logging.getLogger(__name__)


class CacheService(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    async def delete(self, key: str) -> None: ...


class InMemoryCacheService:
    """Dict-backed cache for dev and tests.  TTLs are accepted but ignored."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisCacheService:
    def __init__(self, redis_client, namespace: str = "lms") -> None:
        self._redis = redis_client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(self._key(key))
        except RedisError:
            logger.warning("Cache read failed key=%s", key, exc_info=True)
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(self._key(key), ttl_seconds, value)
        except RedisError:
            logger.warning("Cache write failed key=%s", key, exc_info=True)

    async def delete(self, key: str) -> None:
        # A failed DEL leaves a stale entry until its TTL runs out.
        try:
            await self._redis.delete(self._key(key))
        except RedisError:
            logger.warning("Cache invalidation failed key=%s", key, exc_info=True)


def progress_cache_key(learner_id: str, course_id: int) -> str:
    return f"progress:{learner_id}:{course_id}"


cache_service: CacheService = (
    RedisCacheService(redis_pool) if redis_pool is not None else InMemoryCacheService()
)
