"""SQLite local storage backend.

Stores entries in a single SQLite database file using the Python standard
library ``sqlite3`` module.  This is the default local storage: one file that
every process on the machine (admin console, judge sessions) can share.

Classes
-------
- SQLiteBackend  — SQLite-backed key/value storage
"""
from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from demoday_kv.storage.base import StorageBackend

_DEFAULT_DB_PATH: Path = Path.home() / ".demoday-kv" / "local.db"
_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv_entries (
    key      TEXT PRIMARY KEY,
    value    TEXT NOT NULL,
    saved_at TEXT NOT NULL DEFAULT (datetime('now'))
)
"""
_UPSERT_SQL = """
INSERT INTO kv_entries (key, value, saved_at)
VALUES (?, ?, datetime('now'))
ON CONFLICT(key) DO UPDATE SET
    value    = excluded.value,
    saved_at = excluded.saved_at
"""


class SQLiteBackend(StorageBackend):
    """Persists entries in a local SQLite database.

    Each entry occupies one row with the key as the primary key and the raw
    value stored as TEXT.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Defaults to ``~/.demoday-kv/local.db``.
        The parent directory and table are created automatically on first use.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self._db_path: Path = (
            Path(db_path) if db_path is not None else _DEFAULT_DB_PATH
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_connection(self) -> sqlite3.Connection:
        """Open a connection and ensure the table exists.

        Returns
        -------
        sqlite3.Connection
            A ready-to-use connection with row_factory set.
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(_CREATE_TABLE_SQL)
        conn.commit()
        return conn

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def save(self, key: str, value: str) -> None:
        """Upsert ``value`` for ``key``."""
        with closing(self._get_connection()) as conn, conn:
            conn.execute(_UPSERT_SQL, (key, value))

    def load(self, key: str) -> str:
        """Return the value row for ``key``.

        Raises
        ------
        KeyError
            If no row exists for ``key``.
        """
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            raise KeyError(f"Key {key!r} not found in SQLiteBackend.")
        return str(row["value"])

    def list(self) -> list[str]:
        """Return all keys, most recently saved first."""
        with closing(self._get_connection()) as conn:
            rows = conn.execute(
                "SELECT key FROM kv_entries ORDER BY saved_at DESC"
            ).fetchall()
        return [str(row["key"]) for row in rows]

    def delete(self, key: str) -> None:
        """Remove the row for ``key``.

        Raises
        ------
        KeyError
            If no row exists for ``key``.
        """
        with closing(self._get_connection()) as conn, conn:
            cursor = conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
        if cursor.rowcount == 0:
            raise KeyError(f"Key {key!r} not found in SQLiteBackend.")

    def exists(self, key: str) -> bool:
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                "SELECT 1 FROM kv_entries WHERE key = ?", (key,)
            ).fetchone()
        return row is not None

    def __repr__(self) -> str:
        return f"SQLiteBackend(db_path={str(self._db_path)!r})"
