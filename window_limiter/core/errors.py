"""Limiter exception types.

Configuration and protocol failures are raised as ``AppError`` subclasses so
callers can branch on a stable ``code``. Failures of the store collaborators
themselves (connection refused, script errors) are not wrapped here; they
reach the caller unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    field: str
    value: Any
    raw_result: str
    expected_fields: int
    actual_fields: int
    result_type: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for limiter failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationAppError(AppError):
    """Raised when limiter configuration is rejected at construction."""


class ProtocolAppError(AppError):
    """Raised when the execution engine returns an undecodable result."""
