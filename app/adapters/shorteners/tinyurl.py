"""TinyURL adapter (plain-text API)."""

from __future__ import annotations

from app.adapters.shorteners.base import AbstractShortenerProvider


class TinyUrlProvider(AbstractShortenerProvider):
    """Primary provider.

    ``GET {api_url}?url=<url>`` answers with the short URL as the whole body.
    """

    name = "TinyURL"

    async def _request_short_url(self, url: str) -> str:
        response = await self.client.get(self.api_url, params={"url": url})
        response.raise_for_status()
        return self._validated_short_url(response.text)
