"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so settings never pick
up a developer .env file or write the JSON store to disk.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SHORTENER_PROVIDERS", "tinyurl,isgd")

import pytest

from app.adapters.storage.in_memory import InMemoryKeyValueStore


class FakeClock:
    """Deterministic millisecond clock used to test refill and TTL logic."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()
