"""Key-value store persisted as a single JSON document on disk.

Every write rewrites the whole document through a temporary file followed by
``os.replace`` so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from app.adapters.storage.base import AbstractKeyValueStore

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore(AbstractKeyValueStore):
    """Durable store for a single process.

    Important:
        The lock only serializes access within one process. Several workers
        pointing at the same file will overwrite each other's changes.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        """Load the whole document.

        A missing file is an empty store. A file that is not UTF-8 encoded
        JSON object text is logged and treated as empty so the next write
        replaces it.

        Raises:
            OSError: If the file exists but cannot be read.
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}

        try:
            text = raw.decode("utf-8")
            document = json.loads(text) if text.strip() else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(
                "storage.document_corrupt",
                extra={"path": str(self._path), "error_msg": str(exc)},
            )
            return {}

        if not isinstance(document, dict):
            logger.warning(
                "storage.document_corrupt",
                extra={"path": str(self._path), "error_msg": "top-level value is not an object"},
            )
            return {}
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._read_document().get(key)

    def set(self, key: str, value: Any) -> bool:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "storage.value_not_serializable",
                extra={"storage_key": key, "error_msg": str(exc)},
            )
            return False

        with self._lock:
            document = self._read_document()
            document[key] = value
            self._write_document(document)
            return True

    def remove(self, key: str) -> None:
        with self._lock:
            document = self._read_document()
            if key not in document:
                return
            del document[key]
            self._write_document(document)
