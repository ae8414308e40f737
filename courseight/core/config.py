"""Process configuration, read once from the environment.

Every knob has a default that works for local development against the
in-memory store; bad values fail fast at import with ValueError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

APP_ENVS = ("dev", "test", "prod")
LOG_LEVELS = ("debug", "info", "warning", "error")
_TRUTHY = ("1", "true", "yes", "on")


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _choice(name: str, default: str, allowed: tuple[str, ...]) -> str:
    raw = _env(name, default).lower()
    if raw not in allowed:
        raise ValueError(f"{name} must be {'|'.join(allowed)} (got {raw!r})")
    return raw


def _positive_int(name: str, default: str) -> int:
    raw = _env(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None  # None selects the in-memory store
    db_pool_size: int = 5
    access_token_ttl_min: int = 60
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


def load_settings() -> Settings:
    origins = tuple(
        o.strip()
        for o in _env("CORS_ORIGINS", "http://localhost:5173").split(",")
        if o.strip()
    )
    return Settings(  # type: ignore[arg-type]
        app_env=_choice("APP_ENV", "dev", APP_ENVS),
        log_level=_choice("LOG_LEVEL", "info", LOG_LEVELS),
        log_json=_env("LOG_JSON", "false").lower() in _TRUTHY,
        port=_positive_int("PORT", "8000"),
        database_url=_env("DATABASE_URL", "") or None,
        db_pool_size=_positive_int("DB_POOL_SIZE", "5"),
        access_token_ttl_min=_positive_int("ACCESS_TOKEN_TTL_MIN", "60"),
        cors_origins=origins,
    )


SETTINGS = load_settings()
