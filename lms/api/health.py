"""Operational endpoints (no authentication).

  /health   liveness: 200 while the process answers; the body reports
            each backing service as ok, degraded or not_configured.
  /ready    readiness: 503 while a configured database is unreachable,
            so the load balancer stops routing here without a restart.
  /metrics  Prometheus text exposition.  Restrict it at the ingress;
            route labels reveal traffic patterns.

Redis only backs the progress cache, so a Redis outage degrades /health
but never fails /ready.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from lms.db.engine import engine
from lms.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["operations"])

OK = "ok"
DEGRADED = "degraded"
NOT_CONFIGURED = "not_configured"


async def _redis_status() -> str:
    if redis_pool is None:
        return NOT_CONFIGURED
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except (RedisError, OSError):
        logger.warning("Redis health check failed", exc_info=True)
        return DEGRADED
    return OK


async def _database_status() -> str:
    if engine is None:
        return NOT_CONFIGURED
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.warning("Database health check failed", exc_info=True)
        return DEGRADED
    return OK


@router.get("/health")
async def health() -> dict:
    checks = {"database": await _database_status(), "redis": await _redis_status()}
    return {
        "status": DEGRADED if DEGRADED in checks.values() else OK,
        "checks": checks,
    }


@router.get("/ready")
async def ready() -> Response:
    if await _database_status() == DEGRADED:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
