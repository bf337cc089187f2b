"""Global exception handlers for consistent error responses.

Design:
- ValidationAppError / AppError -> 400
- ShortenerError -> status by kind (429 for rate limiting, 502 when the
  upstream providers failed)
- Unexpected Exception -> generic 500 (safety net)
- Every body has the shape {"error": {code, message, request_id, details?}}
"""

import logging
import math
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError, ShortenerError, ShortenerErrorKind
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

SHORTENER_STATUS_BY_KIND: dict[ShortenerErrorKind, int] = {
    ShortenerErrorKind.INVALID_URL: 400,
    ShortenerErrorKind.RATE_LIMIT: 429,
    ShortenerErrorKind.NETWORK_ERROR: 502,
    ShortenerErrorKind.API_ERROR: 502,
    ShortenerErrorKind.CACHE_ERROR: 500,
    ShortenerErrorKind.UNKNOWN: 500,
}


def _error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle application errors (validation and configuration) as 400."""

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": 400,
            "has_details": bool(exc.details),
        },
    )

    return JSONResponse(status_code=400, content=_error_body(exc.code, exc.message, exc.details))


async def shortener_error_handler(request: Request, exc: ShortenerError) -> JSONResponse:
    """Map an aggregate shortening failure to an HTTP response.

    Rate-limit responses carry a ``Retry-After`` header (whole seconds) when
    the error details include ``retry_after``.

    Args:
        request: FastAPI request object.
        exc: ShortenerError raised by a route.

    Returns:
        JSONResponse with the status code for the error kind.
    """
    status_code = SHORTENER_STATUS_BY_KIND.get(exc.kind, 500)

    logger.warning(
        "shortener_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
        },
    )

    headers: dict[str, str] = {}
    if exc.kind is ShortenerErrorKind.RATE_LIMIT and exc.details and "retry_after" in exc.details:
        headers["Retry-After"] = str(max(0, math.ceil(exc.details["retry_after"])))

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details),
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message without implementation
    details.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(ShortenerError)(shortener_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
