"""Window store interfaces.

The limiter depends on this abstraction (not the concrete implementation)
so the shared store can be Redis in production and a process-local map in
tests or single-worker deployments.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence


class WindowProcedure(enum.Enum):
    """Atomic procedure an execution engine runs against one key.

    Both members evaluate the same window algorithm; only ``LIMIT`` may
    record a new entry.
    """

    LIMIT = "limit"
    CHECK = "check"

    @property
    def admit(self) -> bool:
        return self is WindowProcedure.LIMIT


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a ``limit`` or ``check`` call.

    Attributes:
        remaining_requests: Capacity left after this call (0 when exhausted).
        next_available_timestamp: Epoch milliseconds at which the oldest
            surviving entry leaves the window, or the call time when the
            window is empty.
        is_limited: Whether the window was already full before this call.
    """

    remaining_requests: int
    next_available_timestamp: int
    is_limited: bool


ExecuteFunc = Callable[[WindowProcedure, str, Sequence[str]], Awaitable[Any]]
DeleteFunc = Callable[[str], Awaitable[None]]


class AbstractWindowStore(ABC):
    """Interface for stores able to run the window procedures atomically."""

    @abstractmethod
    async def execute_atomic(
        self,
        procedure: WindowProcedure,
        key: str,
        args: Sequence[str],
    ) -> Any:
        """Run ``procedure`` against ``key`` as one indivisible step.

        Args:
            procedure: Which window procedure to run.
            key: Namespaced store key.
            args: ``[now_ms, window_ms, max_requests]`` as decimal strings.

        Returns:
            Encoded result text ``"<remaining>,<next_available>,<true|false>"``.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop all entries stored under ``key``; missing keys are not an error."""
        raise NotImplementedError
