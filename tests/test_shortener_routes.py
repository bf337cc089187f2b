"""HTTP tests for the shortener, rate limit, cache and health routes."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.rate_limit.token_bucket import TokenBucketRateLimiter
from app.core.app_factory import create_app
from app.core.dependencies import get_shortener_service
from app.core.errors import ShortenerErrorKind
from app.core.results import ShortenSuccess, failure
from app.services.shortener_service import ALL_PROVIDERS_FAILED_MESSAGE, UrlShortenerService
from app.utils.url_cache import TwoTierUrlCache

LONG_URL = "https://example.com/articles/2024/caching-strategies"


def _provider(name: str, result) -> MagicMock:
    provider = MagicMock()
    provider.name = name
    provider.shorten = AsyncMock(return_value=result)
    provider.aclose = AsyncMock()
    return provider


@pytest.fixture
def primary() -> MagicMock:
    return _provider("TinyURL", ShortenSuccess(short_url="https://tinyurl.com/abc", provider="TinyURL"))


@pytest.fixture
def limiter(store, clock) -> TokenBucketRateLimiter:
    return TokenBucketRateLimiter(store, clock=clock)


@pytest.fixture
def service(primary, store, clock, limiter) -> UrlShortenerService:
    return UrlShortenerService(
        providers=[primary],
        cache=TwoTierUrlCache(store, clock=clock),
        rate_limiter=limiter,
    )


@pytest.fixture
def app(service: UrlShortenerService) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_shortener_service] = lambda: service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class TestShortenEndpoint:
    def test_returns_short_url(self, client: TestClient, primary: MagicMock) -> None:
        response = client.post("/v1/shorten", json={"url": LONG_URL})

        assert response.status_code == 200
        assert response.json() == {
            "short_url": "https://tinyurl.com/abc",
            "provider": "TinyURL",
            "cached": False,
        }
        primary.shorten.assert_awaited_once_with(LONG_URL)

    def test_second_call_is_flagged_as_cached(self, client: TestClient, primary: MagicMock) -> None:
        client.post("/v1/shorten", json={"url": LONG_URL})
        response = client.post("/v1/shorten", json={"url": LONG_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["provider"] == "Cache"
        assert body["cached"] is True
        assert primary.shorten.await_count == 1

    @pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com/file", "   "])
    def test_invalid_url_returns_400_without_spending_quota(
        self,
        client: TestClient,
        primary: MagicMock,
        limiter: TokenBucketRateLimiter,
        url: str,
    ) -> None:
        response = client.post("/v1/shorten", json={"url": url})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_url"
        primary.shorten.assert_not_awaited()
        assert limiter.get_remaining_requests() == 50

    def test_missing_url_is_rejected_by_schema(self, client: TestClient) -> None:
        response = client.post("/v1/shorten", json={})

        assert response.status_code == 422

    def test_rate_limited_returns_429_with_retry_after(
        self,
        client: TestClient,
        primary: MagicMock,
        limiter: TokenBucketRateLimiter,
    ) -> None:
        for _ in range(50):
            limiter.record_request()

        response = client.post("/v1/shorten", json={"url": LONG_URL})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3600"
        error = response.json()["error"]
        assert error["code"] == "rate_limit"
        assert error["message"].startswith("Rate limit exceeded. Please try again in 60 minute(s).")
        assert error["details"]["remaining"] == 0
        assert error["details"]["retry_after"] == 3600
        primary.shorten.assert_not_awaited()

    def test_all_providers_failed_returns_502(self, client: TestClient, primary: MagicMock) -> None:
        primary.shorten.return_value = failure(ShortenerErrorKind.NETWORK_ERROR, "down")

        response = client.post("/v1/shorten", json={"url": LONG_URL})

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "api_error"
        assert error["message"] == ALL_PROVIDERS_FAILED_MESSAGE
        assert "down" not in response.text


class TestRateLimitEndpoints:
    def test_reports_full_bucket(self, client: TestClient) -> None:
        response = client.get("/v1/rate-limit")

        assert response.status_code == 200
        assert response.json() == {
            "remaining": 50,
            "time_until_refill_ms": 3_600_000,
            "can_make_request": True,
        }

    def test_reflects_spent_tokens(self, client: TestClient) -> None:
        client.post("/v1/shorten", json={"url": LONG_URL})

        assert client.get("/v1/rate-limit").json()["remaining"] == 49

    def test_reset_refills_bucket(self, client: TestClient, limiter: TokenBucketRateLimiter) -> None:
        for _ in range(50):
            limiter.record_request()

        response = client.post("/v1/rate-limit/reset")

        assert response.status_code == 204
        assert limiter.get_remaining_requests() == 50


class TestCacheEndpoints:
    def test_stats_and_entries_after_shortening(self, client: TestClient, clock) -> None:
        client.post("/v1/shorten", json={"url": LONG_URL})

        stats = client.get("/v1/cache/stats").json()
        entries = client.get("/v1/cache/entries").json()

        assert stats == {"size": 1, "valid_entries": 1, "expired_entries": 0}
        assert entries == [
            {
                "original_url": LONG_URL,
                "short_url": "https://tinyurl.com/abc",
                "provider": "TinyURL",
                "timestamp": clock(),
                "ttl": 24 * 60 * 60 * 1000,
            }
        ]

    def test_clear_empties_cache(self, client: TestClient, primary: MagicMock) -> None:
        client.post("/v1/shorten", json={"url": LONG_URL})

        response = client.delete("/v1/cache")

        assert response.status_code == 204
        assert client.get("/v1/cache/stats").json()["size"] == 0
        client.post("/v1/shorten", json={"url": LONG_URL})
        assert primary.shorten.await_count == 2


class TestHealthEndpoint:
    def test_lists_providers(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "providers": ["TinyURL"]}

    def test_echoes_request_id(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
