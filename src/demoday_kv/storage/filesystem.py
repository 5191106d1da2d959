"""Filesystem local storage backend.

Persists each key as one file under a configurable directory.  Defaults to
``~/.demoday-kv/``.

Classes
-------
- FilesystemBackend  — file-per-key storage
"""
from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote, unquote

from demoday_kv.storage.base import StorageBackend

_DEFAULT_STORAGE_DIR: Path = Path.home() / ".demoday-kv"
_SUFFIX = ".json"


class FilesystemBackend(StorageBackend):
    """Stores each key in its own file.

    Keys are percent-encoded into file names, so any key (including ones
    containing ``/`` or ``..``) maps to exactly one file directly inside the
    storage directory.  Writes go to a temporary sibling and are renamed into
    place, so readers never observe a half-written value.

    Parameters
    ----------
    storage_dir:
        Directory holding the entry files.  Defaults to ``~/.demoday-kv/``
        and is created on first write.
    """

    def __init__(self, storage_dir: str | Path | None = None) -> None:
        self._storage_dir: Path = (
            Path(storage_dir) if storage_dir is not None else _DEFAULT_STORAGE_DIR
        )

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def _path_for(self, key: str) -> Path:
        return self._storage_dir / (quote(key, safe="") + _SUFFIX)

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def save(self, key: str, value: str) -> None:
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        staging = path.with_name(path.name + ".tmp")
        staging.write_text(value, encoding="utf-8")
        os.replace(staging, path)

    def load(self, key: str) -> str:
        """Return the value stored for ``key``.

        Raises
        ------
        KeyError
            If no file exists for ``key``.
        """
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise KeyError(f"Key {key!r} not found at {path}") from None

    def list(self) -> list[str]:
        """Return the keys of every entry file, sorted by file name."""
        if not self._storage_dir.is_dir():
            return []
        return [
            unquote(path.name[: -len(_SUFFIX)])
            for path in sorted(self._storage_dir.glob(f"*{_SUFFIX}"))
            if path.is_file()
        ]

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise KeyError(f"Key {key!r} not found at {path}") from None

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def __repr__(self) -> str:
        return f"FilesystemBackend(storage_dir={str(self._storage_dir)!r})"
