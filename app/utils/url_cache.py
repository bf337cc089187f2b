"""Two-tier TTL cache mapping original URLs to their short URLs.

Tier 1 is a dict held for the life of the process. Tier 2 is a durable
key-value store holding all entries as one JSON object, so results survive
restarts. Expired entries are evicted lazily when they are read, and once at
startup when tier 2 is loaded; there is no sweeper.

Tier 2 is best-effort: read or write failures are logged and the cache keeps
working from memory only.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import ValidationError

from app.adapters.storage.base import AbstractKeyValueStore
from app.core.config import CacheSettings
from app.schemas.shortener import CacheEntry, CacheStats
from app.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "url-shortener-cache"
DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


class TwoTierUrlCache:
    """Thread-safe short URL cache backed by a key-value store.

    Attributes:
        ttl_ms: Time-to-live applied to new entries.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        ttl_ms: int = DEFAULT_TTL_MS,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Clock = now_ms,
    ) -> None:
        self.ttl_ms = ttl_ms
        self._store = store
        self._storage_key = storage_key
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._load_from_storage()

    @classmethod
    def from_settings(
        cls,
        store: AbstractKeyValueStore,
        cache_settings: CacheSettings,
        *,
        clock: Clock = now_ms,
    ) -> "TwoTierUrlCache":
        return cls(
            store,
            ttl_ms=cache_settings.ttl_seconds * 1000,
            storage_key=cache_settings.storage_key,
            clock=clock,
        )

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"TwoTierUrlCache(ttl_ms={self.ttl_ms}, size={len(self._memory)})"

    def get(self, url: str) -> str | None:
        """Return the cached short URL for ``url`` if present and unexpired.

        Args:
            url: Original URL.

        Returns:
            Short URL, or None on a miss or when the entry has expired.
        """

        with self._lock:
            entry = self._memory.get(url)
            tier = "memory"

            if entry is None:
                entry = self._read_entry(url)
                tier = "storage"
                if entry is not None:
                    self._memory[url] = entry

            if entry is None:
                logger.debug("cache.miss", extra={"reason": "not_found"})
                return None

            if entry.is_expired(self._clock()):
                self.delete(url)
                logger.debug("cache.miss", extra={"reason": "expired", "tier": tier})
                return None

            logger.debug("cache.hit", extra={"tier": tier, "provider": entry.provider})
            return entry.short_url

    def set(self, url: str, short_url: str, provider: str) -> None:
        """Store a short URL in both tiers."""

        entry = CacheEntry(
            original_url=url,
            short_url=short_url,
            provider=provider,
            timestamp=self._clock(),
            ttl=self.ttl_ms,
        )

        with self._lock:
            self._memory[url] = entry
            entries = self._read_all()
            # Tier 2 unreadable: leave it untouched
            if entries is not None:
                entries[url] = entry.model_dump(by_alias=True)
                self._write_all(entries)

            logger.debug(
                "cache.set",
                extra={"provider": provider, "size": len(self._memory), "ttl_ms": self.ttl_ms},
            )

    def delete(self, url: str) -> None:
        """Remove ``url`` from both tiers."""

        with self._lock:
            self._memory.pop(url, None)
            entries = self._read_all()
            if entries and url in entries:
                del entries[url]
                self._write_all(entries)

    def clear(self) -> None:
        """Remove every entry from both tiers."""

        with self._lock:
            self._memory.clear()
            self._remove_storage()
            logger.info("cache.cleared")

    def get_all_entries(self) -> list[CacheEntry]:
        """Return the in-memory entries, expired ones included."""

        with self._lock:
            return list(self._memory.values())

    def get_stats(self) -> CacheStats:
        with self._lock:
            now = self._clock()
            expired = sum(1 for entry in self._memory.values() if entry.is_expired(now))
            return CacheStats(
                size=len(self._memory),
                valid_entries=len(self._memory) - expired,
                expired_entries=expired,
            )

    def _load_from_storage(self) -> None:
        """Populate tier 1 from tier 2 and rewrite tier 2 without stale entries."""

        entries = self._read_all()
        if entries is None:
            # Unreadable or corrupt blob: start empty and drop it
            self._remove_storage()
            return
        if not entries:
            return

        now = self._clock()
        for url, raw in entries.items():
            entry = self._parse_entry(raw)
            if entry is not None and not entry.is_expired(now):
                self._memory[url] = entry

        dropped = len(entries) - len(self._memory)
        self._write_all(
            {url: entry.model_dump(by_alias=True) for url, entry in self._memory.items()}
        )
        logger.info("cache.loaded", extra={"size": len(self._memory), "dropped": dropped})

    def _read_all(self) -> dict[str, Any] | None:
        """Read the persisted mapping.

        Returns:
            The mapping (empty when nothing is stored), or None when the store
            failed or holds something other than a JSON object.
        """
        try:
            raw = self._store.get(self._storage_key)
        except Exception as exc:
            logger.warning(
                "cache.storage_error",
                extra={"operation": "read", "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return None

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning("cache.storage_corrupt", extra={"value_type": type(raw).__name__})
            return None
        return raw

    def _read_entry(self, url: str) -> CacheEntry | None:
        entries = self._read_all()
        if not entries or url not in entries:
            return None
        return self._parse_entry(entries[url])

    @staticmethod
    def _parse_entry(raw: Any) -> CacheEntry | None:
        try:
            return CacheEntry.model_validate(raw)
        except ValidationError as exc:
            logger.warning("cache.entry_corrupt", extra={"error_count": exc.error_count()})
            return None

    def _write_all(self, entries: dict[str, Any]) -> None:
        try:
            written = self._store.set(self._storage_key, entries)
        except Exception as exc:
            logger.warning(
                "cache.storage_error",
                extra={"operation": "write", "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return

        if not written:
            logger.warning("cache.storage_error", extra={"operation": "write", "error_msg": "store rejected value"})

    def _remove_storage(self) -> None:
        try:
            self._store.remove(self._storage_key)
        except Exception as exc:
            logger.warning(
                "cache.storage_error",
                extra={"operation": "remove", "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
