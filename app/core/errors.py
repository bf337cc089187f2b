"""Application-level exception types.

This module defines the error taxonomy shared by providers, the rate limiter,
the cache and the orchestration service, plus the generic application errors
raised by configuration and HTTP validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: float
    provider: str
    remaining: int
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
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class ShortenerErrorKind(str, Enum):
    """Categories of URL shortening failures."""

    INVALID_URL = "invalid_url"
    RATE_LIMIT = "rate_limit"
    NETWORK_ERROR = "network_error"
    API_ERROR = "api_error"
    CACHE_ERROR = "cache_error"
    UNKNOWN = "unknown"


@dataclass
class ShortenerError(Exception):
    """Typed failure produced while shortening a URL.

    Providers return these inside a ``ShortenFailure`` instead of raising them.
    The HTTP layer raises the aggregate failure so the global handlers can map
    it to a status code.

    Attributes:
        kind: Failure category.
        message: Human-readable error message.
        cause: Underlying exception or error, if any.
        details: Optional structured context for HTTP responses.
    """

    kind: ShortenerErrorKind
    message: str
    cause: Any = None
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.kind.value
