"""Factory building the ordered provider fallback chain."""

from __future__ import annotations

import httpx

from app.adapters.shorteners.base import AbstractShortenerProvider
from app.adapters.shorteners.isgd import IsGdProvider
from app.adapters.shorteners.tinyurl import TinyUrlProvider
from app.core.config import ShortenerSettings, settings
from app.core.errors import ValidationAppError

PROVIDER_REGISTRY: dict[str, type[AbstractShortenerProvider]] = {
    "tinyurl": TinyUrlProvider,
    "isgd": IsGdProvider,
}


def _api_url_for(name: str, cfg: ShortenerSettings) -> str:
    return {
        "tinyurl": cfg.tinyurl_api_url,
        "isgd": cfg.isgd_api_url,
    }[name]


def create_providers(
    shortener_settings: ShortenerSettings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> tuple[AbstractShortenerProvider, ...]:
    """Instantiate providers in configured fallback order.

    Args:
        shortener_settings: Optional settings; defaults to global settings.
        client: Optional HTTP client shared by every provider.

    Returns:
        Immutable, ordered tuple of providers (duplicates removed).

    Raises:
        ValidationAppError: If the list is empty or names an unknown provider.
    """
    cfg = shortener_settings or settings.shortener
    names = list(dict.fromkeys(cfg.provider_names))

    if not names:
        raise ValidationAppError(
            code="shortener_no_providers",
            message="At least one shortening provider must be configured (SHORTENER_PROVIDERS)",
        )

    unknown = [name for name in names if name not in PROVIDER_REGISTRY]
    if unknown:
        raise ValidationAppError(
            code="shortener_unknown_provider",
            message=(
                f"Unknown shortening provider(s): {', '.join(unknown)}. "
                f"Supported providers: {', '.join(PROVIDER_REGISTRY)}"
            ),
        )

    return tuple(
        PROVIDER_REGISTRY[name](
            _api_url_for(name, cfg),
            client=client,
            timeout_seconds=cfg.timeout_seconds,
            user_agent=cfg.user_agent,
        )
        for name in names
    )
