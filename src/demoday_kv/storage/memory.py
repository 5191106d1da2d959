"""In-memory local storage backend.

Behaves like a browser's local storage inside one process: string keys,
string values, and an optional size quota.  Entries are lost when the
process exits, so it suits tests and single-run scripts.

Classes
-------
- InMemoryBackend  — dict-backed ephemeral storage with an optional quota
"""
from __future__ import annotations

from demoday_kv.errors import StorageQuotaExceededError
from demoday_kv.storage.base import StorageBackend


def _entry_size(key: str, value: str) -> int:
    # Browsers count UTF-16 code units of key and value against the quota.
    return len(key.encode("utf-16-le")) + len(value.encode("utf-16-le"))


class InMemoryBackend(StorageBackend):
    """Ephemeral storage backed by a Python dict.

    Parameters
    ----------
    initial_data:
        Optional pre-populated mapping of keys to raw values.  The mapping
        is copied, so later writes never show up in the caller's dict.
    quota_bytes:
        Optional upper bound on the combined size of every key and value.
        A ``save`` that would exceed it raises
        ``StorageQuotaExceededError`` and leaves the previous value in place.
        ``None`` (the default) means unlimited.

    Example
    -------
    >>> backend = InMemoryBackend(quota_bytes=64)
    >>> backend.save("judges", "[]")
    >>> backend.used_bytes
    16
    """

    def __init__(
        self,
        initial_data: dict[str, str] | None = None,
        quota_bytes: int | None = None,
    ) -> None:
        if quota_bytes is not None and quota_bytes < 0:
            raise ValueError(f"quota_bytes must be >= 0, got {quota_bytes}")
        self._entries: dict[str, str] = dict(initial_data or {})
        self._quota_bytes = quota_bytes
        self._used_bytes = sum(_entry_size(k, v) for k, v in self._entries.items())

    @property
    def quota_bytes(self) -> int | None:
        return self._quota_bytes

    @property
    def used_bytes(self) -> int:
        """Combined size of every stored key and value, as counted by the quota."""
        return self._used_bytes

    # ------------------------------------------------------------------
    # StorageBackend interface
    # ------------------------------------------------------------------

    def save(self, key: str, value: str) -> None:
        previous = self._entries.get(key)
        released = 0 if previous is None else _entry_size(key, previous)
        used = self._used_bytes - released + _entry_size(key, value)
        if self._quota_bytes is not None and used > self._quota_bytes:
            raise StorageQuotaExceededError(
                f"Writing {key!r} needs {used} bytes, quota is {self._quota_bytes}."
            )
        self._entries[key] = value
        self._used_bytes = used

    def load(self, key: str) -> str:
        value = self._entries.get(key)
        if value is None:
            raise KeyError(f"Key {key!r} not found in InMemoryBackend.")
        return value

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def list(self) -> list[str]:
        """Return all stored keys in insertion order."""
        return list(self._entries)

    def delete(self, key: str) -> None:
        value = self._entries.pop(key, None)
        if value is None:
            raise KeyError(f"Key {key!r} not found in InMemoryBackend.")
        self._used_bytes -= _entry_size(key, value)

    def exists(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        quota = "unlimited" if self._quota_bytes is None else self._quota_bytes
        return f"InMemoryBackend(entries={len(self._entries)}, used={self._used_bytes}, quota={quota})"
