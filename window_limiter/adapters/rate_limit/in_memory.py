"""In-memory window store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a lock around shared state makes each procedure atomic.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Sequence

from window_limiter.adapters.rate_limit.base import AbstractWindowStore, WindowProcedure
from window_limiter.services.window_evaluator import (
    WindowEntry,
    encode_result,
    evaluate_window,
)


@dataclass
class _KeyState:
    entries: list[WindowEntry] = field(default_factory=list)
    expires_at: int | None = None


class InMemoryWindowStore(AbstractWindowStore):
    """Execution engine evaluating windows against a process-local dict.

    Mirrors the Redis store: entries are ordered by timestamp, a key expires
    ``window_ms`` after its newest entry, and empty keys disappear. Expiry is
    measured against the ``now`` argument of each call, so a controllable
    clock on the limiter also drives expiry here.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _KeyState] = {}

    def _get_live_state(self, key: str, now: int) -> _KeyState:
        state = self._state_by_key.get(key)
        if state is None or (state.expires_at is not None and now > state.expires_at):
            state = _KeyState()
            self._state_by_key[key] = state
        return state

    async def execute_atomic(
        self,
        procedure: WindowProcedure,
        key: str,
        args: Sequence[str],
    ) -> str:
        now_text, window_text, limit_text = args
        now, window_ms, max_requests = int(now_text), int(window_text), int(limit_text)

        with self._lock:
            state = self._get_live_state(key, now)
            evaluation = evaluate_window(
                state.entries,
                now=now,
                window_ms=window_ms,
                max_requests=max_requests,
                admit=procedure.admit,
            )

            if evaluation.recorded:
                state.expires_at = state.entries[-1][0] + window_ms
            if not state.entries:
                self._state_by_key.pop(key, None)

        return encode_result(evaluation)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._state_by_key.pop(key, None)

    def snapshot(self, key: str) -> list[WindowEntry]:
        """Return a copy of the stored entries for ``key`` (no pruning)."""
        with self._lock:
            state = self._state_by_key.get(key)
            return list(state.entries) if state else []
