"""Sliding-window rate limiter facade.

The limiter owns no per-identifier state. Every call derives the namespaced
store key and the current time, hands both to the execution engine, and
decodes the engine's reply. Cross-caller coordination is entirely the
engine's job: it runs each window procedure atomically per key.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from window_limiter.adapters.rate_limit.base import (
    AbstractWindowStore,
    DeleteFunc,
    ExecuteFunc,
    RateLimitResult,
    WindowProcedure,
)
from window_limiter.core.errors import ConfigurationAppError, ProtocolAppError
from window_limiter.core.logging import hash_identifier
from window_limiter.services.window_evaluator import decode_result

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Current wall-clock time in whole milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def _require_positive_int(name: str, value: Any) -> int:
    # bool is an int subclass; True must not pass as a window of 1 ms
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationAppError(
            code=f"config_invalid_{name}",
            message=f"{name} must be an integer",
            details={"field": name, "value": value},
        )
    if value <= 0:
        raise ConfigurationAppError(
            code=f"config_invalid_{name}",
            message=f"{name} must be > 0",
            details={"field": name, "value": value},
        )
    return value


class SlidingWindowRateLimiter:
    """Admit at most ``max_requests`` events per identifier per trailing window.

    Attributes:
        prefix: Namespace prepended to identifiers (``"<prefix>:<identifier>"``).
        window_ms: Window length in milliseconds.
        max_requests: Window capacity.
    """

    def __init__(
        self,
        *,
        prefix: str,
        window_ms: int,
        max_requests: int,
        execute: ExecuteFunc,
        delete: DeleteFunc,
        clock: Clock = epoch_ms,
    ) -> None:
        """Validate configuration and bind the store collaborators.

        Args:
            prefix: Non-empty key namespace.
            window_ms: Window length in milliseconds (> 0).
            max_requests: Maximum admitted events per window (> 0).
            execute: Coroutine function running a window procedure atomically.
            delete: Coroutine function removing a key unconditionally.
            clock: Returns current epoch milliseconds; replaceable in tests.
                Fractional values are truncated to whole milliseconds.

        Raises:
            ConfigurationAppError: If any value is invalid.
        """
        if not isinstance(prefix, str) or not prefix:
            raise ConfigurationAppError(
                code="config_empty_prefix",
                message="prefix must be a non-empty string",
                details={"field": "prefix", "value": prefix},
            )
        if not callable(execute) or not callable(delete):
            raise ConfigurationAppError(
                code="config_missing_collaborator",
                message="execute and delete collaborators must be callable",
            )

        self.prefix = prefix
        self.window_ms = _require_positive_int("window_ms", window_ms)
        self.max_requests = _require_positive_int("max_requests", max_requests)
        self._execute = execute
        self._delete = delete
        self._clock = clock

    @classmethod
    def from_store(
        cls,
        store: AbstractWindowStore,
        *,
        prefix: str,
        window_ms: int,
        max_requests: int,
        clock: Clock = epoch_ms,
    ) -> "SlidingWindowRateLimiter":
        """Build a limiter whose collaborators are ``store``'s methods."""
        return cls(
            prefix=prefix,
            window_ms=window_ms,
            max_requests=max_requests,
            execute=store.execute_atomic,
            delete=store.delete,
            clock=clock,
        )

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SlidingWindowRateLimiter(prefix={self.prefix!r}, "
            f"window_ms={self.window_ms}, max_requests={self.max_requests})"
        )

    def store_key(self, identifier: str) -> str:
        return f"{self.prefix}:{identifier}"

    async def limit(self, identifier: str) -> RateLimitResult:
        """Try to admit one event for ``identifier``.

        Records an entry only when the window is not already full.

        Returns:
            RateLimitResult; ``is_limited`` reflects the window before this call.

        Raises:
            ProtocolAppError: If the engine reply cannot be decoded.
        """
        result = await self._run(WindowProcedure.LIMIT, identifier)

        if result.is_limited:
            logger.warning(
                "rate_limit.limited",
                extra={
                    "key_hash": hash_identifier(self.store_key(identifier)),
                    "limit": self.max_requests,
                    "window_ms": self.window_ms,
                    "next_available_ts": result.next_available_timestamp,
                },
            )
        else:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "key_hash": hash_identifier(self.store_key(identifier)),
                    "limit": self.max_requests,
                    "remaining": result.remaining_requests,
                    "window_ms": self.window_ms,
                },
            )
        return result

    async def check(self, identifier: str) -> RateLimitResult:
        """Report the window state for ``identifier`` without admitting.

        Side effect: entries that have aged out of the window are pruned from
        the store, exactly as ``limit`` would. The pruning is idempotent and
        never changes what a later call observes, but ``check`` is not a pure
        read against the store.

        Raises:
            ProtocolAppError: If the engine reply cannot be decoded.
        """
        return await self._run(WindowProcedure.CHECK, identifier)

    async def reset(self, identifier: str) -> None:
        """Drop every stored entry for ``identifier``, restoring full capacity."""
        key = self.store_key(identifier)
        await self._delete(key)
        logger.info("rate_limit.reset", extra={"key_hash": hash_identifier(key)})

    async def _run(self, procedure: WindowProcedure, identifier: str) -> RateLimitResult:
        key = self.store_key(identifier)
        now = int(self._clock())
        raw = await self._execute(
            procedure,
            key,
            [str(now), str(self.window_ms), str(self.max_requests)],
        )

        try:
            return decode_result(raw)
        except ProtocolAppError as exc:
            logger.error(
                "rate_limit.protocol_error",
                extra={
                    "key_hash": hash_identifier(key),
                    "procedure": procedure.value,
                    "error_code": exc.code,
                },
            )
            raise
