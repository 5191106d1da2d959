"""Async in-memory embedded store.

Stores values in a plain Python dict guarded by ``asyncio.Lock``.  All data
is lost when the process exits.  Stands in for a host-provided key-value
capability in tests and single-process deployments.

Classes
-------
- AsyncInMemoryStore  — dict-backed ephemeral async store
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Sequence

from demoday_kv.storage.async_base import AsyncKeyValueStore


class AsyncInMemoryStore(AsyncKeyValueStore):
    """Ephemeral async in-process store backed by a Python dict.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.

    Parameters
    ----------
    initial_data:
        Optional pre-populated mapping of keys to values.
    """

    def __init__(self, initial_data: dict[str, Any] | None = None) -> None:
        self._store: dict[str, Any] = copy.deepcopy(initial_data or {})
        self._lock: asyncio.Lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # AsyncKeyValueStore interface
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._lock:
            if key not in self._store:
                return default
            return copy.deepcopy(self._store[key])

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._store[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def keys(self) -> Sequence[str]:
        """Return all stored keys in insertion order."""
        async with self._lock:
            return list(self._store)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"AsyncInMemoryStore(keys={len(self._store)})"


__all__ = ["AsyncInMemoryStore"]
