"""Tests for the key-value store adapters and their factory."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.adapters.storage.factory import create_key_value_store
from app.adapters.storage.in_memory import InMemoryKeyValueStore
from app.adapters.storage.json_file import JsonFileKeyValueStore
from app.core.config import StorageSettings
from app.core.errors import ValidationAppError


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "state" / "store.json"


class TestJsonFileKeyValueStore:
    def test_missing_file_reads_as_empty(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)

        assert store.get("anything") is None
        assert not store_path.exists()

    def test_set_creates_parent_directories_and_persists(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)

        assert store.set("url-shortener-rate-limit", {"tokens": 3, "lastRefill": 1000}) is True

        assert json.loads(store_path.read_text(encoding="utf-8")) == {
            "url-shortener-rate-limit": {"tokens": 3, "lastRefill": 1000}
        }

    def test_values_survive_a_new_instance(self, store_path: Path) -> None:
        JsonFileKeyValueStore(store_path).set("cache", {"https://a.example": {"ttl": 1}})

        reopened = JsonFileKeyValueStore(store_path)

        assert reopened.get("cache") == {"https://a.example": {"ttl": 1}}

    def test_keys_are_independent(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)
        store.set("first", 1)
        store.set("second", [1, 2])

        store.remove("first")

        assert store.get("first") is None
        assert store.get("second") == [1, 2]

    def test_remove_missing_key_does_not_create_file(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)

        store.remove("absent")

        assert not store_path.exists()

    def test_unserializable_value_is_rejected(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)
        store.set("kept", "value")

        assert store.set("broken", {"when": object()}) is False

        assert store.get("kept") == "value"
        assert store.get("broken") is None

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", "\"text\"", ""])
    def test_corrupt_document_reads_as_empty_and_is_replaced(
        self, store_path: Path, content: str
    ) -> None:
        store_path.parent.mkdir(parents=True)
        store_path.write_text(content, encoding="utf-8")
        store = JsonFileKeyValueStore(store_path)

        assert store.get("cache") is None

        store.set("cache", {})
        assert json.loads(store_path.read_text(encoding="utf-8")) == {"cache": {}}

    def test_non_utf8_document_reads_as_empty_and_is_replaced(self, store_path: Path) -> None:
        store_path.parent.mkdir(parents=True)
        store_path.write_bytes(b"\xff\xfe\x00garbage")
        store = JsonFileKeyValueStore(store_path)

        assert store.get("url-shortener-rate-limit") is None
        assert store.set("url-shortener-rate-limit", {"tokens": 2, "lastRefill": 5}) is True

        assert json.loads(store_path.read_text(encoding="utf-8")) == {
            "url-shortener-rate-limit": {"tokens": 2, "lastRefill": 5}
        }

    def test_no_temporary_files_left_behind(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)

        store.set("a", 1)
        store.set("b", 2)

        assert [path.name for path in store_path.parent.iterdir()] == ["store.json"]

    def test_unicode_round_trips(self, store_path: Path) -> None:
        store = JsonFileKeyValueStore(store_path)

        store.set("cache", {"https://例え.jp/ページ": "https://is.gd/x"})

        assert store.get("cache") == {"https://例え.jp/ページ": "https://is.gd/x"}


class TestInMemoryKeyValueStore:
    def test_get_returns_copies(self) -> None:
        store = InMemoryKeyValueStore()
        value = {"tokens": 5}
        store.set("bucket", value)

        value["tokens"] = 0
        fetched = store.get("bucket")
        fetched["tokens"] = 1

        assert store.get("bucket") == {"tokens": 5}

    def test_initial_contents_and_keys(self) -> None:
        store = InMemoryKeyValueStore({"a": 1, "b": 2})

        store.remove("a")
        store.remove("missing")

        assert store.keys() == ["b"]
        assert store.get("a") is None


class TestCreateKeyValueStore:
    def test_file_backend(self, store_path: Path) -> None:
        store = create_key_value_store(StorageSettings(backend="file", file_path=str(store_path)))

        assert isinstance(store, JsonFileKeyValueStore)
        assert store.path == store_path

    def test_memory_backend_is_case_insensitive(self) -> None:
        store = create_key_value_store(StorageSettings(backend="MEMORY"))

        assert isinstance(store, InMemoryKeyValueStore)

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_key_value_store(StorageSettings(backend="redis"))

        assert exc_info.value.code == "storage_unknown_backend"
        assert "redis" in exc_info.value.message
