"""Rate limiting adapters.

The limiter bounds outbound provider attempts. Its state lives in an injected
key-value store so the budget survives restarts.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.token_bucket import TokenBucketRateLimiter

__all__ = ["AbstractRateLimiter", "TokenBucketRateLimiter"]
