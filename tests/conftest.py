"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any settings-dependent import so the
cached settings object is built with test defaults.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from unittest.mock import Mock

import pytest

from window_limiter.adapters.rate_limit.in_memory import InMemoryWindowStore
from window_limiter.services.rate_limiter import SlidingWindowRateLimiter

T0 = 1_700_000_000_000


@pytest.fixture
def clock() -> Mock:
    """Controllable epoch-millisecond clock starting at T0."""
    return Mock(return_value=T0)


@pytest.fixture
def store() -> InMemoryWindowStore:
    return InMemoryWindowStore()


@pytest.fixture
def limiter(store: InMemoryWindowStore, clock: Mock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter.from_store(
        store,
        prefix="ratelimit:test",
        window_ms=60_000,
        max_requests=10,
        clock=clock,
    )
