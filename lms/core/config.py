"""Environment-driven settings, validated once at import.

    APP_ENV             dev|test|prod          (dev)
    LOG_LEVEL           debug|info|warning|error (info)
    LOG_JSON            boolean                (false)
    PORT                integer                (8000)
    DATABASE_URL        postgresql+asyncpg://  (unset: in-memory repos)
    REDIS_URL           redis://               (unset: in-memory cache)
    PROGRESS_CACHE_TTL  seconds, > 0           (300)
    CORS_ORIGINS        comma separated        (http://localhost:5173)

A bad value raises ValueError at startup instead of surfacing later as a
confusing runtime error.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, get_args

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    progress_cache_ttl: int = 300
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    value = _env(name, default).lower()
    if value not in allowed:
        raise ValueError(f"{name} must be {'|'.join(allowed)} (got {value!r})")
    return value


def _flag(name: str, default: str) -> bool:
    raw = _env(name, default)
    if raw.lower() in _TRUE:
        return True
    if raw.lower() in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _integer(name: str, default: str) -> int:
    raw = _env(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


def load_settings() -> Settings:
    cache_ttl = _integer("PROGRESS_CACHE_TTL", "300")
    if cache_ttl <= 0:
        raise ValueError(f"PROGRESS_CACHE_TTL must be positive (got {cache_ttl})")

    return Settings(
        app_env=_choice("APP_ENV", "dev", get_args(AppEnv)),  # type: ignore[arg-type]
        log_level=_choice("LOG_LEVEL", "info", get_args(LogLevel)),  # type: ignore[arg-type]
        log_json=_flag("LOG_JSON", "false"),
        port=_integer("PORT", "8000"),
        database_url=_env("DATABASE_URL") or None,
        redis_url=_env("REDIS_URL") or None,
        progress_cache_ttl=cache_ttl,
        cors_origins=tuple(
            origin.strip()
            for origin in _env("CORS_ORIGINS", "http://localhost:5173").split(",")
            if origin.strip()
        ),
    )


SETTINGS = load_settings()
