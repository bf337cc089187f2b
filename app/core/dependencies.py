"""Service wiring for FastAPI routes.

Routes depend on ``get_shortener_service`` only. The service, its cache and
its rate limiter share one key-value store and live for the whole process so
quota and cached results are kept across requests. Tests replace the service
through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging

from app.adapters.rate_limit.token_bucket import TokenBucketRateLimiter
from app.adapters.shorteners.factory import create_providers
from app.adapters.storage.factory import create_key_value_store
from app.core.config import Settings, settings
from app.services.shortener_service import UrlShortenerService
from app.utils.url_cache import TwoTierUrlCache

logger = logging.getLogger(__name__)


_service: UrlShortenerService | None = None


def build_shortener_service(cfg: Settings | None = None) -> UrlShortenerService:
    """Assemble the service and its collaborators from settings.

    Args:
        cfg: Optional settings; defaults to global settings.

    Returns:
        UrlShortenerService: Fully wired service.

    Raises:
        ValidationAppError: If the storage backend or providers are misconfigured.
    """
    cfg = cfg or settings
    store = create_key_value_store(cfg.storage)
    providers = create_providers(cfg.shortener)

    logger.info(
        "shortener.service_built",
        extra={
            "providers": [provider.name for provider in providers],
            "storage_backend": cfg.storage.backend,
            "limit": cfg.rate_limit.max_requests,
            "window_s": cfg.rate_limit.window_seconds,
            "cache_ttl_s": cfg.cache.ttl_seconds,
        },
    )

    return UrlShortenerService(
        providers=providers,
        cache=TwoTierUrlCache.from_settings(store, cfg.cache),
        rate_limiter=TokenBucketRateLimiter.from_settings(store, cfg.rate_limit),
    )


def get_shortener_service() -> UrlShortenerService:
    """Return the process-wide shortener service, building it on first use."""

    global _service

    if _service is None:
        _service = build_shortener_service()
    return _service


async def shutdown_shortener_service() -> None:
    """Close provider clients and drop the process-wide instance."""

    global _service

    if _service is not None:
        await _service.aclose()
        _service = None
