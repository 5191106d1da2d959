"""Abstract base class for local storage backends.

Local storage is the process-local, string-keyed, string-valued store that
plays the role of a browser's ``localStorage``: it holds the shared fallback
document and the persisted remote credentials.  Every role (admin, judges)
running against the same local storage sees the same data.

Classes
-------
- StorageBackend  — abstract base for all local storage backends
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Protocol for reading and writing raw string entries.

    Backend implementations must be safe for sequential (single-threaded)
    use.  Thread-safety is the responsibility of the caller when used from
    concurrent code.
    """

    @abstractmethod
    def save(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``, overwriting any previous entry.

        Parameters
        ----------
        key:
            Storage key.
        value:
            UTF-8 string to persist (typically JSON).
        """

    @abstractmethod
    def load(self, key: str) -> str:
        """Return the raw value stored under ``key``.

        Raises
        ------
        KeyError
            If no entry exists for ``key``.
        """

    @abstractmethod
    def list(self) -> list[str]:
        """Return all stored keys.  Order is implementation-defined."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the entry for ``key``.

        Raises
        ------
        KeyError
            If no entry exists for ``key``.
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if an entry for ``key`` exists."""

    def get(self, key: str) -> str | None:
        """Return the value for ``key`` or ``None`` when it is absent."""
        try:
            return self.load(key)
        except KeyError:
            return None
