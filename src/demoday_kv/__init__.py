"""demoday-kv — Multi-backend key-value persistence for demo-day judging.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import demoday_kv
>>> demoday_kv.__version__
'0.1.0'
"""
from __future__ import annotations

# Facade and configuration
from demoday_kv.adapter import KVAdapter
from demoday_kv.config import AdapterSettings, load_settings
from demoday_kv.detector import BackendDetector
from demoday_kv.models import RemoteCredentials, StorageInfo, StorageMode

# Errors
from demoday_kv.errors import (
    AuthenticationError,
    ConfigurationError,
    DocumentNotFoundError,
    KVAdapterError,
    PermissionDeniedError,
    RateLimitError,
    RemoteStorageError,
    StorageQuotaExceededError,
)

# Backends
from demoday_kv.remote.client import GistClient
from demoday_kv.remote.coalescer import DELETED, WriteCoalescer
from demoday_kv.shared import SharedDocumentStore
from demoday_kv.storage.async_base import AsyncKeyValueStore
from demoday_kv.storage.async_memory import AsyncInMemoryStore
from demoday_kv.storage.async_redis import AsyncRedisStore
from demoday_kv.storage.base import StorageBackend
from demoday_kv.storage.filesystem import FilesystemBackend
from demoday_kv.storage.memory import InMemoryBackend
from demoday_kv.storage.sqlite import SQLiteBackend

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Facade and configuration
    "AdapterSettings",
    "BackendDetector",
    "KVAdapter",
    "RemoteCredentials",
    "StorageInfo",
    "StorageMode",
    "load_settings",
    # Errors
    "AuthenticationError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "KVAdapterError",
    "PermissionDeniedError",
    "RateLimitError",
    "RemoteStorageError",
    "StorageQuotaExceededError",
    # Remote
    "DELETED",
    "GistClient",
    "WriteCoalescer",
    # Local and embedded storage
    "AsyncInMemoryStore",
    "AsyncKeyValueStore",
    "AsyncRedisStore",
    "FilesystemBackend",
    "InMemoryBackend",
    "SQLiteBackend",
    "SharedDocumentStore",
    "StorageBackend",
]
