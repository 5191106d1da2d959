"""Storage backend subpackage.

Local storage backends implement the ``StorageBackend`` ABC: string-keyed,
string-valued stores that hold the shared fallback document and the persisted
remote credentials.  Embedded stores implement the ``AsyncKeyValueStore``
ABC: host-provided key-value services the adapter routes to directly.

Public surface (local)
----------------------
- StorageBackend     — abstract base class
- FilesystemBackend  — one file per key
- SQLiteBackend      — one row per key in a local SQLite database
- InMemoryBackend    — in-process dict (useful for testing)

Public surface (embedded)
-------------------------
- AsyncKeyValueStore  — abstract base class
- AsyncInMemoryStore  — async dict-based store with asyncio.Lock
- AsyncRedisStore     — redis.asyncio store (requires ``redis``; the
  package is imported when the store is instantiated)
"""
from __future__ import annotations

from demoday_kv.storage.async_base import AsyncKeyValueStore
from demoday_kv.storage.async_memory import AsyncInMemoryStore
from demoday_kv.storage.async_redis import AsyncRedisStore
from demoday_kv.storage.base import StorageBackend
from demoday_kv.storage.filesystem import FilesystemBackend
from demoday_kv.storage.memory import InMemoryBackend
from demoday_kv.storage.sqlite import SQLiteBackend

__all__ = [
    "AsyncInMemoryStore",
    "AsyncKeyValueStore",
    "AsyncRedisStore",
    "FilesystemBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "StorageBackend",
]
