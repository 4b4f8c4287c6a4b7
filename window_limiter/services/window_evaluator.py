"""Sliding-window evaluation and the engine result codec.

``evaluate_window`` is the Python rendition of the procedure the Redis
engine runs as Lua (see ``adapters/rate_limit/scripts.py``); both prune,
count, decide, optionally record and compute the next-available time in the
same order so the two engines answer identically for the same history.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

from window_limiter.adapters.rate_limit.base import RateLimitResult
from window_limiter.core.errors import ProtocolAppError


WindowEntry = tuple[int, str]
"""``(timestamp_ms, member)``; entries are ordered by timestamp."""

_INTEGER_RE = re.compile(r"-?[0-9]+")
_FLAGS = {"true": True, "false": False}


@dataclass(frozen=True)
class WindowEvaluation:
    """Outcome of one evaluation, before encoding."""

    remaining: int
    next_available: int
    is_limited: bool
    recorded: bool


def _score(entry: WindowEntry) -> int:
    return entry[0]


def evaluate_window(
    entries: list[WindowEntry],
    *,
    now: int,
    window_ms: int,
    max_requests: int,
    admit: bool,
) -> WindowEvaluation:
    """Evaluate (and possibly record into) one identifier's window.

    ``entries`` must be sorted by timestamp and is modified in place: stale
    entries are dropped on every call, and an admitting call that is not
    limited appends a new entry for ``now``.

    Args:
        entries: Sorted window entries for a single key.
        now: Current time in epoch milliseconds.
        window_ms: Window length in milliseconds.
        max_requests: Capacity of the window.
        admit: Whether a non-limited call records a new entry.

    Returns:
        WindowEvaluation with remaining capacity, next-available time and the
        limited flag as observed before recording.
    """

    cutoff = now - window_ms
    stale = bisect.bisect_left(entries, cutoff, key=_score)
    del entries[:stale]

    remaining = max_requests - len(entries)
    is_limited = remaining <= 0
    recorded = False

    if admit and not is_limited:
        lo = bisect.bisect_left(entries, now, key=_score)
        hi = bisect.bisect_right(entries, now, key=_score)
        entries.insert(hi, (now, f"{now}-{hi - lo}"))
        remaining -= 1
        recorded = True

    next_available = entries[0][0] + window_ms if entries else now

    return WindowEvaluation(
        remaining=remaining,
        next_available=next_available,
        is_limited=is_limited,
        recorded=recorded,
    )


def encode_result(evaluation: WindowEvaluation) -> str:
    """Encode an evaluation the way the Lua procedure replies."""
    flag = "true" if evaluation.is_limited else "false"
    return f"{evaluation.remaining},{evaluation.next_available},{flag}"


def _parse_int(field: str, value: str, raw: str) -> int:
    if not _INTEGER_RE.fullmatch(value):
        raise ProtocolAppError(
            code="protocol_invalid_integer",
            message=f"Engine result field '{field}' is not an integer",
            details={"field": field, "value": value, "raw_result": raw},
        )
    return int(value)


def decode_result(raw: object) -> RateLimitResult:
    """Decode ``"<remaining>,<next_available>,<true|false>"`` into a result.

    Args:
        raw: Value returned by the execution engine.

    Returns:
        RateLimitResult parsed from the engine reply.

    Raises:
        ProtocolAppError: If the reply is not a string, does not have exactly
            three fields, or a field cannot be parsed.
    """

    if not isinstance(raw, str):
        raise ProtocolAppError(
            code="protocol_not_a_string",
            message="Engine result must be a string",
            details={"result_type": type(raw).__name__},
        )

    fields = raw.split(",")
    if len(fields) != 3:
        raise ProtocolAppError(
            code="protocol_wrong_field_count",
            message="Engine result must contain exactly three fields",
            details={"raw_result": raw, "expected_fields": 3, "actual_fields": len(fields)},
        )

    remaining_text, next_text, flag_text = fields
    remaining = _parse_int("remaining_requests", remaining_text, raw)
    next_available = _parse_int("next_available_timestamp", next_text, raw)

    if flag_text not in _FLAGS:
        raise ProtocolAppError(
            code="protocol_invalid_flag",
            message="Engine result limited flag must be 'true' or 'false'",
            details={"field": "is_limited", "value": flag_text, "raw_result": raw},
        )

    return RateLimitResult(
        remaining_requests=remaining,
        next_available_timestamp=next_available,
        is_limited=_FLAGS[flag_text],
    )
