"""Rate limiter interface.

The shortening service depends on this abstraction rather than on the token
bucket directly, so tests can substitute a fake limiter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.schemas.shortener import RateLimitInfo


class AbstractRateLimiter(ABC):
    """Interface for outbound request limiters.

    None of the operations may raise; storage problems are handled inside the
    implementation.
    """

    @abstractmethod
    def can_make_request(self) -> bool:
        """Whether at least one request is currently allowed."""
        raise NotImplementedError

    @abstractmethod
    def record_request(self) -> None:
        """Consume one unit of budget (no-op when none is left)."""
        raise NotImplementedError

    @abstractmethod
    def get_remaining_requests(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_time_until_refill(self) -> int:
        """Milliseconds until the budget is fully restored."""
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Restore the full budget."""
        raise NotImplementedError

    def get_info(self) -> RateLimitInfo:
        return RateLimitInfo(
            remaining=self.get_remaining_requests(),
            time_until_refill_ms=self.get_time_until_refill(),
            can_make_request=self.can_make_request(),
        )
