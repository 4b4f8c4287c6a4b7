"""Sliding-window rate limiting backed by an atomic shared store."""

from window_limiter.adapters.rate_limit.base import (
    AbstractWindowStore,
    RateLimitResult,
    WindowProcedure,
)
from window_limiter.adapters.rate_limit.in_memory import InMemoryWindowStore
from window_limiter.adapters.rate_limit.redis_store import RedisWindowStore
from window_limiter.core.errors import AppError, ConfigurationAppError, ProtocolAppError
from window_limiter.services.rate_limiter import SlidingWindowRateLimiter

__all__ = [
    "AbstractWindowStore",
    "AppError",
    "ConfigurationAppError",
    "InMemoryWindowStore",
    "ProtocolAppError",
    "RateLimitResult",
    "RedisWindowStore",
    "SlidingWindowRateLimiter",
    "WindowProcedure",
]
