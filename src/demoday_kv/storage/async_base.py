"""Abstract base class for embedded (host-provided) key-value stores.

An embedded store is natively key/value and already shared by every user of
the host platform, so the adapter routes to it directly without caching or
batching.  Values are JSON data, not raw strings.

Classes
-------
- AsyncKeyValueStore  — abstract base for embedded stores
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence


class AsyncKeyValueStore(ABC):
    """Protocol for async access to a host-provided key-value capability.

    All methods are coroutines (``async def``).  The adapter probes a store
    by calling ``keys()`` once; any exception marks the store unavailable.
    """

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` when absent.

        A stored JSON ``null`` is a present value and comes back as ``None``.
        """

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store the JSON-serialisable ``value`` under ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``.  Deleting an absent key is not an error."""

    @abstractmethod
    async def keys(self) -> Sequence[str]:
        """Return every stored key.  Order is implementation-defined."""


__all__ = ["AsyncKeyValueStore"]
