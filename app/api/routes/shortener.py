from __future__ import annotations

import dataclasses
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.core.dependencies import get_shortener_service
from app.core.errors import ShortenerErrorKind, ValidationAppError
from app.core.results import ShortenFailure
from app.schemas.shortener import (
    CacheEntry,
    CacheStats,
    RateLimitInfo,
    ShortenRequest,
    ShortenResponse,
)
from app.services.shortener_service import CACHE_PROVIDER_NAME, UrlShortenerService
from app.utils.url_validators import is_valid_http_url

router = APIRouter()

ShortenerService = Annotated[UrlShortenerService, Depends(get_shortener_service)]


@router.post("/shorten", response_model=ShortenResponse, tags=["Shortener"])
async def shorten_url(payload: ShortenRequest, service: ShortenerService) -> ShortenResponse:
    """Shorten a URL.

    The URL is validated before the service is called, so malformed input
    never spends provider quota.

    Raises:
        ValidationAppError: 400 when the URL is not an absolute http(s) URL.
        ShortenerError: 429 when rate limited, 502 when every provider failed.
    """
    if not is_valid_http_url(payload.url):
        raise ValidationAppError(
            code="invalid_url",
            message="URL must be an absolute http or https URL.",
        )

    result = await service.shorten_url(payload.url)

    if isinstance(result, ShortenFailure):
        error = result.error
        if error.kind is ShortenerErrorKind.RATE_LIMIT:
            info = service.get_rate_limit_info()
            error = dataclasses.replace(
                error,
                details={
                    "retry_after": info.time_until_refill_ms / 1000,
                    "remaining": info.remaining,
                },
            )
        raise error

    return ShortenResponse(
        short_url=result.short_url,
        provider=result.provider,
        cached=result.provider == CACHE_PROVIDER_NAME,
    )


@router.get("/rate-limit", response_model=RateLimitInfo, tags=["Rate Limit"])
def get_rate_limit(service: ShortenerService) -> RateLimitInfo:
    return service.get_rate_limit_info()


@router.post("/rate-limit/reset", status_code=status.HTTP_204_NO_CONTENT, tags=["Rate Limit"])
def reset_rate_limit(service: ShortenerService) -> Response:
    service.reset_rate_limiter()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/cache/stats", response_model=CacheStats, tags=["Cache"])
def get_cache_stats(service: ShortenerService) -> CacheStats:
    return service.get_cache_stats()


@router.get(
    "/cache/entries",
    response_model=list[CacheEntry],
    response_model_by_alias=False,
    tags=["Cache"],
)
def list_cache_entries(service: ShortenerService) -> list[CacheEntry]:
    """List in-memory cache entries, including expired ones not yet evicted."""
    return service.get_cache_entries()


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT, tags=["Cache"])
def clear_cache(service: ShortenerService) -> Response:
    service.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
