"""Application-level exception types.

Domain errors carry a stable machine-readable code so the middleware and the
global exception handlers can map them to HTTP responses consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    value: str
    http_status: int
    identifier_hash: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

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


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class ThrottleAppError(AppError):
    """Raised when the throttling engine cannot make an admission decision."""


class ClientUnidentifiedError(ThrottleAppError):
    """The identifier resolver returned an empty value."""

    def __init__(self, details: ErrorDetails | None = None) -> None:
        super().__init__(
            code="client_unidentified",
            message="Could not identify client.",
            details=details,
        )


class StoreInconsistencyError(ThrottleAppError):
    """The store lost an entry between increment and re-read."""

    def __init__(self, details: ErrorDetails | None = None) -> None:
        super().__init__(
            code="store_inconsistency",
            message="Could not identify client.",
            details=details,
        )
