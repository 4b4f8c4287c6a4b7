"""Settings-driven construction of the rate limiter.

This module wires the configured window store into a limiter instance.

Design goals:
- Callers depend on ``SlidingWindowRateLimiter`` only, never on the store.
- Swap-friendly: the backend is selected by ``RATE_LIMIT_BACKEND``.
- A process-wide instance is cached so in-memory state survives across calls.
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from window_limiter.adapters.rate_limit.base import AbstractWindowStore
from window_limiter.adapters.rate_limit.in_memory import InMemoryWindowStore
from window_limiter.adapters.rate_limit.redis_store import RedisWindowStore
from window_limiter.core.config import LimiterSettings, get_settings
from window_limiter.core.errors import ConfigurationAppError
from window_limiter.services.rate_limiter import Clock, SlidingWindowRateLimiter, epoch_ms

logger = logging.getLogger(__name__)


_limiter: SlidingWindowRateLimiter | None = None
_limiter_config: tuple[str, int, int, str, str] | None = None


def create_window_store(
    limiter_settings: LimiterSettings,
    *,
    redis: Redis | None = None,
) -> AbstractWindowStore:
    """Instantiate the window store selected by ``limiter_settings.backend``.

    Args:
        limiter_settings: Limiter configuration.
        redis: Optional existing client to reuse for the Redis backend.

    Returns:
        AbstractWindowStore: Store acting as the execution engine.

    Raises:
        ConfigurationAppError: If the backend name is not supported.
    """
    backend = limiter_settings.backend.lower()

    if backend == "memory":
        return InMemoryWindowStore()

    if backend == "redis":
        if redis is not None:
            return RedisWindowStore(redis)
        return RedisWindowStore.from_url(limiter_settings.redis_url)

    raise ConfigurationAppError(
        code="config_unknown_backend",
        message=f"Unknown rate limit backend: '{backend}'. Supported backends: memory, redis",
        details={"field": "backend", "value": backend},
    )


def create_rate_limiter(
    limiter_settings: LimiterSettings | None = None,
    *,
    redis: Redis | None = None,
    clock: Clock = epoch_ms,
) -> SlidingWindowRateLimiter:
    """Build a limiter from settings (global settings when omitted)."""

    cfg = limiter_settings or get_settings().limiter
    store = create_window_store(cfg, redis=redis)

    logger.info(
        "rate_limit.configured",
        extra={
            "backend": cfg.backend,
            "limit": cfg.max_requests,
            "window_ms": cfg.window_ms,
        },
    )
    return SlidingWindowRateLimiter.from_store(
        store,
        prefix=cfg.prefix,
        window_ms=cfg.window_ms,
        max_requests=cfg.max_requests,
        clock=clock,
    )


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Return a process-wide rate limiter instance.

    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    cfg = get_settings().limiter
    config = (cfg.prefix, cfg.window_ms, cfg.max_requests, cfg.backend, cfg.redis_url)

    if _limiter is None or _limiter_config != config:
        _limiter = create_rate_limiter(cfg)
        _limiter_config = config

    return _limiter
