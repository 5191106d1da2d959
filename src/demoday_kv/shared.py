"""Local fallback store.

``SharedDocumentStore`` keeps the whole logical document as one JSON object
under a single reserved key of a local ``StorageBackend``.  Every role that
runs against the same local storage (admin console, each judge) therefore
sees the same data.

Every operation reads the whole document, mutates it and writes it back.
Failures never propagate: an unreadable document reads as empty and a failed
write is logged and dropped.

Classes
-------
- SharedDocumentStore  — per-key access to one shared JSON document
"""
from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from demoday_kv.models import to_json_value
from demoday_kv.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (OSError, sqlite3.Error)


class SharedDocumentStore:
    """Per-key view over one JSON document held in local storage.

    Parameters
    ----------
    storage:
        Local storage backend holding the document.
    storage_key:
        Reserved key under which the document is stored.
    """

    def __init__(self, storage: StorageBackend, storage_key: str) -> None:
        self._storage = storage
        self._storage_key = storage_key

    @property
    def storage_key(self) -> str:
        return self._storage_key

    # ------------------------------------------------------------------
    # Whole-document access
    # ------------------------------------------------------------------

    def read_document(self) -> dict[str, Any]:
        """Return the stored document, or ``{}`` if it is absent or corrupt."""
        try:
            raw = self._storage.get(self._storage_key)
        except _STORAGE_ERRORS:
            logger.exception("SharedDocumentStore: cannot read %r", self._storage_key)
            return {}
        except UnicodeDecodeError:
            logger.error(
                "SharedDocumentStore: document %r is not valid UTF-8, treating as empty",
                self._storage_key,
            )
            return {}
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.error(
                "SharedDocumentStore: document %r is not valid JSON, treating as empty",
                self._storage_key,
            )
            return {}
        if not isinstance(data, dict):
            logger.error(
                "SharedDocumentStore: document %r is not a JSON object, treating as empty",
                self._storage_key,
            )
            return {}
        return data

    def write_document(self, document: dict[str, Any]) -> bool:
        """Replace the stored document.

        Returns
        -------
        bool
            True if the document was persisted, False if serialisation or the
            storage backend failed (the failure is logged).
        """
        try:
            raw = json.dumps(document)
        except (TypeError, ValueError):
            logger.exception("SharedDocumentStore: document is not JSON-serialisable")
            return False
        try:
            self._storage.save(self._storage_key, raw)
        except _STORAGE_ERRORS:
            logger.exception("SharedDocumentStore: cannot write %r", self._storage_key)
            return False
        return True

    # ------------------------------------------------------------------
    # Per-key access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self.read_document().get(key, default)

    def set(self, key: str, value: Any) -> None:
        try:
            json_value = to_json_value(value)
        except ValueError:
            logger.exception("SharedDocumentStore: value for %r is not serialisable", key)
            return
        document = self.read_document()
        document[key] = json_value
        self.write_document(document)

    def delete(self, key: str) -> None:
        document = self.read_document()
        if key not in document:
            return
        del document[key]
        self.write_document(document)

    def keys(self) -> list[str]:
        return list(self.read_document())

    def __repr__(self) -> str:
        return f"SharedDocumentStore(storage={self._storage!r}, key={self._storage_key!r})"


__all__ = ["SharedDocumentStore"]
