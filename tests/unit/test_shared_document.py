"""Unit tests for demoday_kv.shared.SharedDocumentStore."""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from demoday_kv.shared import SharedDocumentStore
from demoday_kv.storage.filesystem import FilesystemBackend
from demoday_kv.storage.memory import InMemoryBackend

KEY = "meetup_shared_db_v2"


class FailingBackend(InMemoryBackend):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    def save(self, key: str, value: str) -> None:
        raise self.error

    def load(self, key: str) -> str:
        raise self.error


@pytest.fixture()
def storage() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def store(storage: InMemoryBackend) -> SharedDocumentStore:
    return SharedDocumentStore(storage, KEY)


class TestReadWrite:
    def test_absent_document_is_empty(self, store: SharedDocumentStore) -> None:
        assert store.read_document() == {}
        assert store.keys() == []

    def test_set_stores_one_json_object(
        self, store: SharedDocumentStore, storage: InMemoryBackend
    ) -> None:
        store.set("programs", [{"id": "p1"}])
        store.set("judges", [])
        assert storage.list() == [KEY]
        assert json.loads(storage.load(KEY)) == {"programs": [{"id": "p1"}], "judges": []}

    def test_get_with_default(self, store: SharedDocumentStore) -> None:
        store.set("a", 1)
        assert store.get("a") == 1
        assert store.get("b") is None
        assert store.get("b", "fallback") == "fallback"

    def test_overwrite_keeps_other_keys(self, store: SharedDocumentStore) -> None:
        store.set("a", 1)
        store.set("b", 2)
        store.set("a", 3)
        assert store.read_document() == {"a": 3, "b": 2}

    def test_delete(self, store: SharedDocumentStore) -> None:
        store.set("a", 1)
        store.set("b", None)
        store.delete("b")
        assert store.keys() == ["a"]

    def test_delete_missing_does_not_write(
        self, store: SharedDocumentStore, storage: InMemoryBackend
    ) -> None:
        store.delete("ghost")
        assert storage.list() == []

    def test_unserialisable_value_is_dropped(
        self, store: SharedDocumentStore, storage: InMemoryBackend
    ) -> None:
        store.set("bad", {"nested": object()})
        assert storage.list() == []

    def test_persists_through_filesystem(self, tmp_path: Path) -> None:
        SharedDocumentStore(FilesystemBackend(tmp_path), KEY).set("k", "v")
        assert SharedDocumentStore(FilesystemBackend(tmp_path), KEY).get("k") == "v"


class TestCorruption:
    def test_invalid_json_reads_as_empty(self, storage: InMemoryBackend) -> None:
        storage.save(KEY, "not json at all")
        assert SharedDocumentStore(storage, KEY).read_document() == {}

    def test_non_object_reads_as_empty(self, storage: InMemoryBackend) -> None:
        storage.save(KEY, "[1, 2, 3]")
        assert SharedDocumentStore(storage, KEY).read_document() == {}

    def test_invalid_utf8_file_reads_as_empty(self, tmp_path: Path) -> None:
        (tmp_path / f"{KEY}.json").write_bytes(b"\xff\xfe{bad")
        store = SharedDocumentStore(FilesystemBackend(tmp_path), KEY)
        assert store.read_document() == {}
        assert store.keys() == []

    def test_invalid_utf8_file_is_replaced_on_write(self, tmp_path: Path) -> None:
        (tmp_path / f"{KEY}.json").write_bytes(b"\xff\xfe{bad")
        backend = FilesystemBackend(tmp_path)
        SharedDocumentStore(backend, KEY).set("k", 1)
        assert json.loads(backend.load(KEY)) == {"k": 1}

    def test_write_after_corruption_replaces_document(
        self, storage: InMemoryBackend
    ) -> None:
        storage.save(KEY, "{oops")
        store = SharedDocumentStore(storage, KEY)
        store.set("k", 1)
        assert json.loads(storage.load(KEY)) == {"k": 1}


class TestStorageFailures:
    @pytest.mark.parametrize("error", [OSError("disk full"), sqlite3.OperationalError("locked")])
    def test_read_failure_is_empty(self, error: Exception) -> None:
        store = SharedDocumentStore(FailingBackend(error), KEY)
        assert store.read_document() == {}
        assert store.get("k", "default") == "default"

    @pytest.mark.parametrize("error", [OSError("disk full"), sqlite3.OperationalError("locked")])
    def test_write_failure_returns_false(self, error: Exception) -> None:
        store = SharedDocumentStore(FailingBackend(error), KEY)
        assert store.write_document({"k": 1}) is False
        store.set("k", 1)

    def test_write_document_rejects_unserialisable(self, store: SharedDocumentStore) -> None:
        assert store.write_document({"k": object()}) is False
