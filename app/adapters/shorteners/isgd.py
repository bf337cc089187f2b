"""is.gd adapter (JSON API)."""

from __future__ import annotations

from typing import Any

from app.adapters.shorteners.base import AbstractShortenerProvider
from app.core.errors import ShortenerError, ShortenerErrorKind


class IsGdProvider(AbstractShortenerProvider):
    """Fallback provider.

    ``GET {api_url}?format=json&url=<url>`` answers with
    ``{"shorturl": ...}`` on success or ``{"errormessage": ...}`` when the
    service refuses the URL.
    """

    name = "is.gd"

    async def _request_short_url(self, url: str) -> str:
        response = await self.client.get(self.api_url, params={"format": "json", "url": url})
        response.raise_for_status()

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise ShortenerError(
                ShortenerErrorKind.API_ERROR, f"Invalid response from {self.name}", cause=exc
            ) from exc

        if not isinstance(payload, dict):
            raise ShortenerError(ShortenerErrorKind.API_ERROR, f"Invalid response from {self.name}")

        error_message = payload.get("errormessage")
        if error_message:
            raise ShortenerError(ShortenerErrorKind.API_ERROR, f"is.gd error: {error_message}")

        return self._validated_short_url(payload.get("shorturl"))
