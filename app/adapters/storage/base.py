"""Key-value store interface.

The cache and the rate limiter depend on this abstraction so the durable tier
can be a JSON file, process memory, or a fake in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractKeyValueStore(ABC):
    """Interface for JSON-compatible key-value stores.

    Implementations may raise on I/O failures. Callers are expected to treat
    the store as best-effort and fall back to safe defaults.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under ``key`` or None if absent."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any) -> bool:
        """Store a JSON-compatible value.

        Returns:
            True if the value was written, False if it could not be stored.
        """
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove ``key`` if present."""
        raise NotImplementedError
