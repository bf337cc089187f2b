"""Key-value store adapters backing the cache and rate limiter state."""

from app.adapters.storage.base import AbstractKeyValueStore
from app.adapters.storage.factory import create_key_value_store
from app.adapters.storage.in_memory import InMemoryKeyValueStore
from app.adapters.storage.json_file import JsonFileKeyValueStore

__all__ = [
    "AbstractKeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "create_key_value_store",
]
