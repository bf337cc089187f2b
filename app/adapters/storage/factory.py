"""Factory for the durable key-value store."""

from __future__ import annotations

from app.adapters.storage.base import AbstractKeyValueStore
from app.adapters.storage.in_memory import InMemoryKeyValueStore
from app.adapters.storage.json_file import JsonFileKeyValueStore
from app.core.config import StorageSettings, settings
from app.core.errors import ValidationAppError


def create_key_value_store(storage_settings: StorageSettings | None = None) -> AbstractKeyValueStore:
    """Instantiate the store selected by configuration.

    Args:
        storage_settings: Optional settings; defaults to global settings.

    Returns:
        AbstractKeyValueStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    cfg = storage_settings or settings.storage
    backend = cfg.backend.lower()

    if backend == "file":
        return JsonFileKeyValueStore(cfg.file_path)

    if backend == "memory":
        return InMemoryKeyValueStore()

    raise ValidationAppError(
        code="storage_unknown_backend",
        message=f"Unknown storage backend: '{cfg.backend}'. Supported backends: file, memory",
    )
