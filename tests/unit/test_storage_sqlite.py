"""Unit tests for demoday_kv.storage.sqlite.SQLiteBackend.

Uses tmp_path so every test gets an isolated, ephemeral SQLite file.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from demoday_kv.storage.sqlite import SQLiteBackend


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "local.db"


@pytest.fixture()
def backend(db_path: Path) -> SQLiteBackend:
    return SQLiteBackend(db_path=db_path)


class TestSQLiteBackendConstruction:
    def test_default_none_uses_home_based_path(self) -> None:
        backend = SQLiteBackend(db_path=None)
        assert str(backend._db_path).endswith("local.db")

    def test_repr_contains_db_path(self, backend: SQLiteBackend) -> None:
        assert "local.db" in repr(backend)

    def test_parent_directory_created_on_first_use(
        self, backend: SQLiteBackend, db_path: Path
    ) -> None:
        backend.save("k", "v")
        assert db_path.exists()


class TestSQLiteBackendOperations:
    def test_save_and_load(self, backend: SQLiteBackend) -> None:
        backend.save("k1", '{"x": 1}')
        assert backend.load("k1") == '{"x": 1}'

    def test_upsert_overwrites(self, backend: SQLiteBackend) -> None:
        backend.save("k1", "first")
        backend.save("k1", "second")
        assert backend.load("k1") == "second"
        assert backend.list() == ["k1"]

    def test_load_missing_raises_key_error(self, backend: SQLiteBackend) -> None:
        with pytest.raises(KeyError, match="ghost"):
            backend.load("ghost")

    def test_list_and_exists(self, backend: SQLiteBackend) -> None:
        backend.save("a", "1")
        backend.save("b", "2")
        assert set(backend.list()) == {"a", "b"}
        assert backend.exists("a") is True
        assert backend.exists("zzz") is False

    def test_delete(self, backend: SQLiteBackend) -> None:
        backend.save("a", "1")
        backend.delete("a")
        assert backend.exists("a") is False
        with pytest.raises(KeyError):
            backend.delete("a")

    def test_two_instances_share_one_file(self, db_path: Path) -> None:
        SQLiteBackend(db_path=db_path).save("shared", "yes")
        assert SQLiteBackend(db_path=db_path).load("shared") == "yes"
