"""Tests for environment-driven settings."""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from window_limiter.core.config import LimiterSettings, LogSettings, Settings, get_settings

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_limiter_defaults() -> None:
    cfg = LimiterSettings()

    assert cfg.prefix == "ratelimit"
    assert cfg.window_ms == 60_000
    assert cfg.max_requests == 10


def test_limiter_reads_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_PREFIX", "login")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_MS", "1000")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "3")
    monkeypatch.setenv("RATE_LIMIT_BACKEND", "redis")

    cfg = LimiterSettings()

    assert (cfg.prefix, cfg.window_ms, cfg.max_requests, cfg.backend) == ("login", 1000, 3, "redis")


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("RATE_LIMIT_WINDOW_MS", "0"),
        ("RATE_LIMIT_MAX_REQUESTS", "-1"),
        ("RATE_LIMIT_PREFIX", ""),
        ("RATE_LIMIT_BACKEND", "memcached"),
    ],
)
def test_invalid_environment_values_fail_validation(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        LimiterSettings()


def test_settings_container_composes_groups(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "plain")

    composed = Settings()

    assert isinstance(composed.limiter, LimiterSettings)
    assert isinstance(composed.log, LogSettings)
    assert composed.log.format == "plain"


def test_get_settings_is_cached(fresh_settings) -> None:
    assert fresh_settings() is fresh_settings()


def test_get_settings_validates_environment_on_first_use(
    monkeypatch: pytest.MonkeyPatch, fresh_settings
) -> None:
    monkeypatch.setenv("RATE_LIMIT_WINDOW_MS", "0")

    with pytest.raises(ValidationError):
        fresh_settings()


def test_package_imports_and_builds_with_invalid_environment() -> None:
    code = (
        "from unittest.mock import AsyncMock\n"
        "from window_limiter import SlidingWindowRateLimiter\n"
        "limiter = SlidingWindowRateLimiter(prefix='rl', window_ms=1000, max_requests=1,"
        " execute=AsyncMock(), delete=AsyncMock())\n"
        "print(limiter.store_key('k'))\n"
    )
    env = {
        **os.environ,
        "RATE_LIMIT_WINDOW_MS": "0",
        "LOG_FORMAT": "xml",
        "PYTHONPATH": str(PROJECT_ROOT),
    }

    proc = subprocess.run(
        [sys.executable, "-c", code],
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == "rl:k"
