"""ASGI entry point: ``uvicorn lms.main:app``."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lms.api import admin, courses, health, progress
from lms.core.config import SETTINGS, Settings
from lms.core.logging import setup_logging
from lms.db.engine import lifespan_db
from lms.db.redis import lifespan_redis
from lms.middleware.metrics import MetricsMiddleware
from lms.middleware.request_context import RequestContextMiddleware

setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db(), lifespan_redis():
        logger.info(
            "college-lms ready env=%s port=%d", SETTINGS.app_env, SETTINGS.port
        )
        yield


def create_app(settings: Settings = SETTINGS) -> FastAPI:
    docs = settings.is_dev
    application = FastAPI(
        title="college-lms",
        lifespan=lifespan,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )

    # Starlette runs the last-added middleware first:
    # RequestContext → Metrics → CORS → router.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestContextMiddleware)

    for module in (health, admin, courses, progress):
        application.include_router(module.router)
    return application


app = create_app()
