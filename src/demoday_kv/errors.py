"""Exception hierarchy for the key-value adapter.

Only configuration actions (for example ``KVAdapter.configure_remote_storage``)
let these escape to callers.  The ``get``/``set``/``delete``/``keys``/``flush``
operations catch them, log them, and degrade.

Classes
-------
- KVAdapterError         — base class
- ConfigurationError     — invalid or failed storage configuration
- StorageQuotaExceededError — a local write would exceed the storage quota
- RemoteStorageError     — any failure talking to the remote document store
- RateLimitError         — the remote API rejected the call for rate limiting
- AuthenticationError    — the access token was rejected (HTTP 401)
- PermissionDeniedError  — the token lacks permission (HTTP 403)
- DocumentNotFoundError  — the remote document does not exist (HTTP 404)
"""
from __future__ import annotations


class KVAdapterError(Exception):
    """Base class for all errors raised by ``demoday_kv``."""


class ConfigurationError(KVAdapterError):
    """Raised when remote storage cannot be configured."""


class StorageQuotaExceededError(KVAdapterError, OSError):
    """A local write would push the backend past its size quota.

    Subclasses ``OSError`` so callers that already tolerate a full disk
    tolerate a full quota the same way.
    """


class RemoteStorageError(KVAdapterError):
    """A request to the remote document store failed.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    status_code:
        HTTP status of the failed response, or ``None`` for transport errors.
    """

    retryable: bool = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class RateLimitError(RemoteStorageError):
    """The remote API refused the request because the rate limit was hit."""


class AuthenticationError(RemoteStorageError):
    """The remote API rejected the access token."""

    retryable = False


class PermissionDeniedError(RemoteStorageError):
    """The access token is valid but not allowed to touch the document."""

    retryable = False


class DocumentNotFoundError(RemoteStorageError):
    """The configured remote document does not exist."""

    retryable = False


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DocumentNotFoundError",
    "KVAdapterError",
    "PermissionDeniedError",
    "RateLimitError",
    "RemoteStorageError",
    "StorageQuotaExceededError",
]
