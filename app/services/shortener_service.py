"""URL shortening service orchestrating cache, rate limiting and providers.

This service is the core business logic behind the shorten endpoint. For each
URL it:
- Serves a cached short URL when one exists (no quota spent)
- Refuses the call when the outbound budget is exhausted
- Tries providers strictly in order, spending one token per attempt
- Caches the first success

Per-provider failures are logged and never surfaced; callers only see the
aggregate outcome.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.shorteners.base import AbstractShortenerProvider
from app.core.errors import ShortenerError, ShortenerErrorKind
from app.core.results import ShortenFailure, ShortenResult, ShortenSuccess, failure
from app.schemas.shortener import CacheEntry, CacheStats, RateLimitInfo
from app.utils.url_cache import TwoTierUrlCache

logger = logging.getLogger(__name__)

CACHE_PROVIDER_NAME = "Cache"
ALL_PROVIDERS_FAILED_MESSAGE = "All URL shortening providers failed. Please try again later."


def build_rate_limit_message(time_until_refill_ms: int, remaining: int) -> str:
    """Build the user-facing message for a rate-limited call.

    Args:
        time_until_refill_ms: Milliseconds until the bucket is full again.
        remaining: Requests left in the bucket.

    Returns:
        Message with the wait rounded up to whole minutes.
    """
    minutes = math.ceil(time_until_refill_ms / 60_000)
    return (
        f"Rate limit exceeded. Please try again in {minutes} minute(s). "
        f"You have {remaining} requests remaining."
    )


class UrlShortenerService:
    """Shortens URLs through an ordered provider fallback chain.

    Attributes:
        providers: Providers in priority order.
        cache: Two-tier cache of previous results.
        rate_limiter: Budget for outbound provider attempts.
    """

    def __init__(
        self,
        providers: Iterable[AbstractShortenerProvider],
        cache: TwoTierUrlCache,
        rate_limiter: AbstractRateLimiter,
    ) -> None:
        self.providers: tuple[AbstractShortenerProvider, ...] = tuple(providers)
        self.cache = cache
        self.rate_limiter = rate_limiter

    def _rate_limited(self) -> ShortenFailure:
        time_until_refill = self.rate_limiter.get_time_until_refill()
        remaining = self.rate_limiter.get_remaining_requests()

        logger.warning(
            "shortener.rate_limited",
            extra={"remaining": remaining, "retry_after_ms": time_until_refill},
        )
        return failure(
            ShortenerErrorKind.RATE_LIMIT,
            build_rate_limit_message(time_until_refill, remaining),
        )

    async def _try_providers(self, url: str) -> ShortenResult:
        """Run the fallback chain and return the first success.

        Args:
            url: URL to shorten (already missed the cache).

        Returns:
            ShortenSuccess from the first provider that succeeded, or an
            API_ERROR failure whose cause is the last provider error.
        """
        last_error: ShortenerError | None = None

        for position, provider in enumerate(self.providers):
            # One token per attempt, spent even if the provider raises
            self.rate_limiter.record_request()

            try:
                result = await provider.shorten(url)
            except Exception as exc:
                logger.warning(
                    "shortener.provider_exception",
                    extra={
                        "provider": provider.name,
                        "position": position,
                        "error_type": type(exc).__name__,
                        "error_msg": str(exc),
                    },
                )
                last_error = ShortenerError(
                    ShortenerErrorKind.UNKNOWN,
                    f"Provider {provider.name} raised {type(exc).__name__}",
                    cause=exc,
                )
                continue

            if isinstance(result, ShortenSuccess):
                self.cache.set(url, result.short_url, result.provider)
                logger.info(
                    "shortener.succeeded",
                    extra={"provider": result.provider, "position": position},
                )
                return result

            logger.warning(
                "shortener.provider_failed",
                extra={
                    "provider": provider.name,
                    "position": position,
                    "error_kind": result.error.kind.value,
                    "error_message": result.error.message,
                },
            )
            last_error = result.error

        logger.error(
            "shortener.all_failed",
            extra={
                "providers_tried": len(self.providers),
                "last_error_kind": last_error.kind.value if last_error else None,
            },
        )
        return failure(ShortenerErrorKind.API_ERROR, ALL_PROVIDERS_FAILED_MESSAGE, cause=last_error)

    async def shorten_url(self, url: str) -> ShortenResult:
        """Shorten ``url`` using cache, rate limiter and providers.

        Never raises; every outcome is a ``ShortenResult``.

        Args:
            url: URL to shorten.

        Returns:
            ShortenSuccess (provider "Cache" on a cache hit) or ShortenFailure
            with kind RATE_LIMIT or API_ERROR.
        """
        # Step 1: Cache
        cached = self.cache.get(url)
        if cached:
            return ShortenSuccess(short_url=cached, provider=CACHE_PROVIDER_NAME)

        # Step 2: Outbound budget
        if not self.rate_limiter.can_make_request():
            return self._rate_limited()

        # Step 3: Providers in order
        return await self._try_providers(url)

    def get_rate_limit_info(self) -> RateLimitInfo:
        return self.rate_limiter.get_info()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def get_cache_entries(self) -> list[CacheEntry]:
        return self.cache.get_all_entries()

    def clear_cache(self) -> None:
        self.cache.clear()

    def reset_rate_limiter(self) -> None:
        self.rate_limiter.reset()

    async def aclose(self) -> None:
        """Release provider HTTP clients."""
        for provider in self.providers:
            await provider.aclose()
