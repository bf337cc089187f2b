"""Persistent token bucket limiting outbound provider attempts.

Notes:
- Refill is computed lazily on each access; there is no timer.
- Tokens come back gradually: after a fraction f of the window has elapsed
  since the last refill, floor(f * max_requests) tokens are added. Once a whole
  window has elapsed the bucket is full again.
- Per-process lock only. Two processes sharing one store can race.
"""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.storage.base import AbstractKeyValueStore
from app.core.config import RateLimitSettings
from app.schemas.shortener import TokenBucketState
from app.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "url-shortener-rate-limit"


class TokenBucketRateLimiter(AbstractRateLimiter):
    """Token bucket whose state is read from and written back to a store.

    Every public operation reloads the state, so the store is the source of
    truth. Store failures are logged and never propagate. While the store
    cannot be read the last known state stands in for it; an invalid or
    missing state starts a full bucket.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        max_requests: int = 50,
        window_ms: int = 60 * 60 * 1000,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Clock = now_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Durable store holding the bucket state.
            max_requests: Bucket capacity.
            window_ms: Time for an empty bucket to refill completely.
            storage_key: Key of the state inside the store.
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If max_requests or window_ms are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._store = store
        self._max_requests = max_requests
        self._window_ms = window_ms
        self._storage_key = storage_key
        self._clock = clock
        self._lock = threading.RLock()
        # Last state seen or written; used while the store cannot be read
        self._last_known: TokenBucketState | None = None

    @classmethod
    def from_settings(
        cls,
        store: AbstractKeyValueStore,
        rate_limit_settings: RateLimitSettings,
        *,
        clock: Clock = now_ms,
    ) -> "TokenBucketRateLimiter":
        return cls(
            store,
            max_requests=rate_limit_settings.max_requests,
            window_ms=rate_limit_settings.window_seconds * 1000,
            storage_key=rate_limit_settings.storage_key,
            clock=clock,
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def can_make_request(self) -> bool:
        with self._lock:
            state = self._load_state()
            self._refill(state)
            return state.tokens > 0

    def record_request(self) -> None:
        with self._lock:
            state = self._load_state()
            self._refill(state)
            if state.tokens > 0:
                state.tokens -= 1
                self._save_state(state)

    def get_remaining_requests(self) -> int:
        with self._lock:
            state = self._load_state()
            self._refill(state)
            return max(0, state.tokens)

    def get_time_until_refill(self) -> int:
        with self._lock:
            state = self._load_state()
            elapsed = self._clock() - state.last_refill
            return min(self._window_ms, max(0, self._window_ms - elapsed))

    def reset(self) -> None:
        with self._lock:
            self._save_state(self._full_bucket())
            logger.info("rate_limit.reset", extra={"limit": self._max_requests})

    def _full_bucket(self) -> TokenBucketState:
        return TokenBucketState(tokens=self._max_requests, last_refill=self._clock())

    def _refill(self, state: TokenBucketState) -> None:
        now = self._clock()
        elapsed = now - state.last_refill

        if elapsed >= self._window_ms:
            state.tokens = self._max_requests
            state.last_refill = now
            self._save_state(state)
            return

        # Integer form of floor((elapsed / window) * max)
        refill_amount = (elapsed * self._max_requests) // self._window_ms
        if refill_amount > 0:
            state.tokens = min(self._max_requests, state.tokens + refill_amount)
            state.last_refill = now
            self._save_state(state)

    def _load_state(self) -> TokenBucketState:
        try:
            raw = self._store.get(self._storage_key)
        except Exception as exc:
            logger.warning(
                "rate_limit.state_read_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            if self._last_known is not None:
                return self._last_known.model_copy()
            return self._full_bucket()

        if raw is None:
            return self._full_bucket()

        try:
            state = TokenBucketState.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "rate_limit.state_corrupt",
                extra={"error_count": exc.error_count()},
            )
            return self._full_bucket()

        # Capacity may have been lowered since the state was written
        if state.tokens > self._max_requests:
            state.tokens = self._max_requests
        self._last_known = state.model_copy()
        return state

    def _save_state(self, state: TokenBucketState) -> None:
        self._last_known = state.model_copy()
        try:
            written = self._store.set(self._storage_key, state.model_dump(by_alias=True))
        except Exception as exc:
            logger.warning(
                "rate_limit.state_write_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return

        if not written:
            logger.warning("rate_limit.state_write_failed", extra={"error_msg": "store rejected value"})
