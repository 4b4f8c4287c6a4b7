"""Limiter configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


class LimiterSettings(BaseSettings):
    """Sliding-window limiter configuration."""

    prefix: str = Field(
        "ratelimit",
        description="Namespace prepended to every identifier to form the store key",
        min_length=1,
    )
    window_ms: int = Field(
        60_000,
        description="Length of the trailing window in milliseconds",
        ge=1,
    )
    max_requests: int = Field(
        10,
        description="Maximum number of admitted events per window (per identifier)",
        ge=1,
    )
    backend: Literal["memory", "redis"] = Field(
        "memory",
        description="Execution engine backing the window store",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL used when backend is 'redis'",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file' (default logs/window_limiter.log)",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Settings container composed from the limiter and logging groups."""

    app_env: str = APP_ENV
    limiter: LimiterSettings = Field(default_factory=LimiterSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton, built on first use.

    Nothing reads the environment at import time, so a limiter constructed
    with explicit arguments is unaffected by invalid ``RATE_LIMIT_*`` or
    ``LOG_*`` variables.
    """
    return Settings()
