"""Provider interface and shared request/error handling."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from app.core.errors import ShortenerError, ShortenerErrorKind
from app.core.results import ShortenFailure, ShortenResult, ShortenSuccess, failure
from app.utils.url_validators import is_valid_http_url

logger = logging.getLogger(__name__)


class AbstractShortenerProvider(ABC):
    """Adapter around one third-party shortening API.

    ``shorten`` never raises (cancellation aside). Every outcome is returned
    as a ``ShortenResult``:

    - malformed or non-http(s) input: INVALID_URL, no request is sent
    - connection failures and timeouts: NETWORK_ERROR
    - HTTP 429: RATE_LIMIT
    - any other 4xx/5xx status or an unusable body: API_ERROR
    - anything else, unresolved redirects included: UNKNOWN

    Owned clients follow redirects.

    Subclasses implement ``_request_short_url`` and may raise freely inside it.
    """

    name: str = ""

    def __init__(
        self,
        api_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        user_agent: str | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_url: Provider endpoint.
            client: Optional shared client; when omitted the adapter creates
                and owns one.
            timeout_seconds: Timeout for requests made by an owned client.
            user_agent: Optional User-Agent for an owned client.
        """
        self.api_url = api_url
        self._owns_client = client is None
        if client is None:
            headers = {"User-Agent": user_agent} if user_agent else None
            client = httpx.AsyncClient(
                timeout=timeout_seconds,
                headers=headers,
                follow_redirects=True,
            )
        self.client = client

    @abstractmethod
    async def _request_short_url(self, url: str) -> str:
        """Call the provider and return the short URL.

        Raises:
            ShortenerError: For failures the subclass classifies itself.
            httpx.HTTPError: For transport and status failures.
        """
        ...

    async def shorten(self, url: str) -> ShortenResult:
        if not is_valid_http_url(url):
            return failure(ShortenerErrorKind.INVALID_URL, "Invalid URL format")

        try:
            short_url = await self._request_short_url(url)
        except ShortenerError as exc:
            error = exc
        except Exception as exc:
            error = self._classify_exception(exc)
        else:
            logger.info("shortener.provider_succeeded", extra={"provider": self.name})
            return ShortenSuccess(short_url=short_url, provider=self.name)

        logger.info(
            "shortener.provider_error",
            extra={"provider": self.name, "error_kind": error.kind.value, "error_message": error.message},
        )
        return ShortenFailure(error=error)

    def _classify_exception(self, exc: Exception) -> ShortenerError:
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 429:
                return ShortenerError(
                    ShortenerErrorKind.RATE_LIMIT,
                    f"Rate limit exceeded for {self.name}",
                    cause=exc,
                )
            if 400 <= status < 600:
                return ShortenerError(
                    ShortenerErrorKind.API_ERROR,
                    f"{self.name} API error: {status} {exc.response.reason_phrase}".rstrip(),
                    cause=exc,
                )
            # Unfollowed redirects and informational statuses
            return ShortenerError(
                ShortenerErrorKind.UNKNOWN,
                f"Unexpected response from {self.name}: {status}",
                cause=exc,
            )

        if isinstance(exc, httpx.TransportError):
            return ShortenerError(
                ShortenerErrorKind.NETWORK_ERROR,
                f"Network error: Unable to reach {self.name} service",
                cause=exc,
            )

        if isinstance(exc, httpx.DecodingError):
            return ShortenerError(
                ShortenerErrorKind.API_ERROR,
                f"Invalid response from {self.name}",
                cause=exc,
            )

        return ShortenerError(
            ShortenerErrorKind.UNKNOWN,
            "Unknown error occurred while shortening URL",
            cause=exc,
        )

    def _validated_short_url(self, candidate: object) -> str:
        """Return ``candidate`` if it is a usable short URL.

        Raises:
            ShortenerError: API_ERROR when the provider returned something else.
        """
        short_url = candidate.strip() if isinstance(candidate, str) else ""
        if not is_valid_http_url(short_url):
            raise ShortenerError(ShortenerErrorKind.API_ERROR, f"Invalid response from {self.name}")
        return short_url

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self.client.aclose()
