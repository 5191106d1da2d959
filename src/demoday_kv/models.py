"""Adapter state models.

Classes
-------
- StorageMode        — which backend an adapter is routed to
- RemoteCredentials  — access token and document id for the remote store
- StorageInfo        — diagnostics snapshot returned by ``KVAdapter.storage_info``

Functions
---------
- to_json_value      — convert an arbitrary value into plain JSON data
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python


class StorageMode(str, Enum):
    """Backend selected by the detector, in priority order."""

    EMBEDDED = "embedded"
    REMOTE = "remote"
    LOCAL = "local"


class RemoteCredentials(BaseModel):
    """Credentials needed to operate in ``StorageMode.REMOTE``.

    Parameters
    ----------
    token:
        Opaque API access token.
    document_id:
        Identifier of the remote document holding all keys.
    """

    token: str = Field(min_length=1)
    document_id: str = Field(min_length=1)

    model_config = {"frozen": True}

    def __repr__(self) -> str:
        return f"RemoteCredentials(token='***', document_id={self.document_id!r})"


class StorageInfo(BaseModel):
    """Diagnostics describing the active backend."""

    mode: StorageMode
    details: str
    is_persistent: bool = True
    is_shared: bool = True
    pending_changes: int = 0
    last_sync_error: str | None = None


def to_json_value(value: Any) -> Any:
    """Return ``value`` as plain JSON data (dicts, lists, str, numbers, bools, None).

    Pydantic models, datetimes, enums and tuples are converted the same way
    Pydantic serialises them in JSON mode.  The result never aliases mutable
    containers of the input.

    Raises
    ------
    pydantic_core.PydanticSerializationError
        If ``value`` contains something that has no JSON representation.
    """
    return to_jsonable_python(value)


__all__ = ["RemoteCredentials", "StorageInfo", "StorageMode", "to_json_value"]
