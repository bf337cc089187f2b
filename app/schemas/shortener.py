"""Pydantic schemas for persisted shortener state and API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """A cached short URL with its expiration metadata.

    Persisted with camelCase keys so stores written by earlier clients stay
    readable.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, strict=True)

    original_url: str = Field(..., alias="originalUrl", description="URL that was shortened.")
    short_url: str = Field(..., alias="shortUrl", description="Shortened URL.")
    provider: str = Field(..., description="Provider that produced the short URL.")
    timestamp: int = Field(..., description="Creation time, epoch milliseconds.")
    ttl: int = Field(..., ge=0, description="Time to live in milliseconds.")

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.timestamp > self.ttl


class TokenBucketState(BaseModel):
    """Persisted token bucket for the outbound request limiter."""

    model_config = ConfigDict(populate_by_name=True, strict=True)

    tokens: int = Field(..., ge=0)
    last_refill: int = Field(..., alias="lastRefill", description="Epoch milliseconds.")


class CacheStats(BaseModel):
    size: int = Field(..., description="Entries held in memory.")
    valid_entries: int = Field(..., description="Entries that have not expired.")
    expired_entries: int = Field(..., description="Entries past their TTL, not yet evicted.")


class RateLimitInfo(BaseModel):
    remaining: int = Field(..., description="Provider attempts left in the current bucket.")
    time_until_refill_ms: int = Field(
        ..., description="Milliseconds until the bucket is fully refilled."
    )
    can_make_request: bool


class ShortenRequest(BaseModel):
    url: str = Field(
        ...,
        min_length=1,
        max_length=8192,
        description="Absolute http(s) URL to shorten.",
    )


class ShortenResponse(BaseModel):
    """Successful shortening result."""

    short_url: str
    provider: str = Field(..., description="Provider name, or 'Cache' when served from cache.")
    cached: bool = False
