"""Unified key-value adapter.

``KVAdapter`` is the only surface the rest of the judging application uses.
It resolves the active backend once through ``BackendDetector`` and routes
``get``/``set``/``delete``/``keys``/``flush`` to it:

* ``EMBEDDED`` — straight to the host-provided ``AsyncKeyValueStore``;
* ``REMOTE``   — through a ``WriteCoalescer`` in front of a ``GistClient``;
* ``LOCAL``    — to a ``SharedDocumentStore`` in local storage.

Normal operations never raise: backend failures are logged and the call
degrades (``default`` for reads, no-op for writes).  Only
``configure_remote_storage`` raises, so an administrator can be told that the
token or document id is wrong.

Example
-------
::

    async with KVAdapter(local_storage=SQLiteBackend("judging.db")) as kv:
        await kv.set("judges", [])
        judges = await kv.get("judges", [])

Classes
-------
- KVAdapter  — dispatching facade over the three backends
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

import httpx

from demoday_kv.config import AdapterSettings
from demoday_kv.detector import BackendDetector
from demoday_kv.errors import ConfigurationError, RemoteStorageError
from demoday_kv.models import RemoteCredentials, StorageInfo, StorageMode, to_json_value
from demoday_kv.remote.client import GistClient
from demoday_kv.remote.coalescer import WriteCoalescer
from demoday_kv.shared import SharedDocumentStore
from demoday_kv.storage.async_base import AsyncKeyValueStore
from demoday_kv.storage.base import StorageBackend
from demoday_kv.storage.sqlite import SQLiteBackend

logger = logging.getLogger(__name__)

_MODE_DETAILS: dict[StorageMode, str] = {
    StorageMode.EMBEDDED: (
        "Data is kept in the embedded key-value store and shared automatically "
        "between all users and devices."
    ),
    StorageMode.REMOTE: (
        "Data is kept in a remote gist and synchronised between all configured "
        "users and devices."
    ),
    StorageMode.LOCAL: (
        "Data is kept in local storage and shared between every role (admin and "
        "judges) on this machine."
    ),
}


class KVAdapter:
    """Key-value facade that picks the best available backend.

    Parameters
    ----------
    local_storage:
        Local storage for the shared fallback document and the persisted
        remote credentials.  Defaults to ``SQLiteBackend()``.
    embedded_store:
        Optional host-provided key-value store; preferred when reachable.
    settings:
        Adapter settings.  Defaults to ``AdapterSettings()``.
    transport:
        Optional ``httpx`` transport for the remote client (tests, proxies).
    """

    def __init__(
        self,
        local_storage: StorageBackend | None = None,
        embedded_store: AsyncKeyValueStore | None = None,
        settings: AdapterSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AdapterSettings()
        self._local_storage = local_storage if local_storage is not None else SQLiteBackend()
        self._embedded_store = embedded_store
        self._transport = transport
        self._detector = BackendDetector(
            self._local_storage, embedded_store, settings=self._settings
        )
        self._shared = SharedDocumentStore(
            self._local_storage, self._settings.shared_storage_key
        )
        self._coalescer: WriteCoalescer | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def settings(self) -> AdapterSettings:
        return self._settings

    @property
    def storage_mode(self) -> StorageMode | None:
        """The active mode, or ``None`` until the first operation resolves it."""
        return self._detector.mode

    @property
    def coalescer(self) -> WriteCoalescer | None:
        """The remote write coalescer, once remote mode is in use."""
        return self._coalescer

    async def storage_info(self) -> StorageInfo:
        """Describe the active backend and its synchronisation state."""
        mode = await self._detector.detect()
        if mode is StorageMode.REMOTE and self._coalescer is not None:
            error = self._coalescer.last_error
            return StorageInfo(
                mode=mode,
                details=_MODE_DETAILS[mode],
                pending_changes=self._coalescer.pending_count,
                last_sync_error=str(error) if error is not None else None,
            )
        return StorageInfo(mode=mode, details=_MODE_DETAILS[mode])

    # ------------------------------------------------------------------
    # Routing helpers
    # ------------------------------------------------------------------

    def _remote(self) -> WriteCoalescer:
        if self._coalescer is None:
            credentials = self._detector.credentials
            assert credentials is not None
            self._coalescer = self._make_coalescer(
                GistClient(
                    credentials.token,
                    credentials.document_id,
                    settings=self._settings,
                    transport=self._transport,
                )
            )
        return self._coalescer

    def _make_coalescer(self, client: GistClient) -> WriteCoalescer:
        return WriteCoalescer(client, settings=self._settings)

    def _embedded(self) -> AsyncKeyValueStore:
        assert self._embedded_store is not None
        return self._embedded_store

    # ------------------------------------------------------------------
    # Key-value operations
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default``."""
        mode = await self._detector.detect()
        if mode is StorageMode.EMBEDDED:
            try:
                return await self._embedded().get(key, default)
            except Exception:
                logger.exception("Embedded store get failed for %r", key)
                return default
        if mode is StorageMode.REMOTE:
            return await self._remote().get(key, default)
        return self._shared.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``.

        ``value`` must be JSON-serialisable (Pydantic models, datetimes and
        enums are converted).  Unserialisable values are logged and dropped.
        """
        mode = await self._detector.detect()
        try:
            json_value = to_json_value(value)
        except ValueError:
            logger.exception("Value for %r is not JSON-serialisable; not stored", key)
            return
        if mode is StorageMode.EMBEDDED:
            try:
                await self._embedded().set(key, json_value)
            except Exception:
                logger.exception("Embedded store set failed for %r", key)
        elif mode is StorageMode.REMOTE:
            await self._remote().set(key, json_value)
        else:
            self._shared.set(key, json_value)

    async def delete(self, key: str) -> None:
        """Remove ``key``.  Removing an absent key is a no-op."""
        mode = await self._detector.detect()
        if mode is StorageMode.EMBEDDED:
            try:
                await self._embedded().delete(key)
            except Exception:
                logger.exception("Embedded store delete failed for %r", key)
        elif mode is StorageMode.REMOTE:
            await self._remote().delete(key)
        else:
            self._shared.delete(key)

    async def keys(self) -> list[str]:
        """Return every stored key."""
        mode = await self._detector.detect()
        if mode is StorageMode.EMBEDDED:
            try:
                return list(await self._embedded().keys())
            except Exception:
                logger.exception("Embedded store keys failed")
                return []
        if mode is StorageMode.REMOTE:
            return await self._remote().keys()
        return self._shared.keys()

    async def flush(self) -> None:
        """Push pending remote changes now.  No-op for the other backends."""
        mode = await self._detector.detect()
        if mode is StorageMode.REMOTE:
            await self._remote().flush()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def configure_remote_storage(
        self, token: str, existing_document_id: str | None = None
    ) -> str:
        """Switch to the remote document store.

        If ``existing_document_id`` is readable with ``token`` it is adopted;
        otherwise a new private document seeded with ``{}`` is created.

        Parameters
        ----------
        token:
            API access token with gist permissions.
        existing_document_id:
            Optional id of a document created earlier (e.g. by another admin).

        Returns
        -------
        str
            The id of the document now in use.

        Raises
        ------
        ConfigurationError
            If the token is empty, a new document cannot be created, or the
            credentials cannot be persisted.
        """
        if not token or not token.strip():
            raise ConfigurationError("An access token is required.")
        token = token.strip()

        client = GistClient(token, settings=self._settings, transport=self._transport)
        try:
            document_id = await self._resolve_document(client, existing_document_id)
            credentials = RemoteCredentials(token=token, document_id=document_id)
            try:
                self._detector.use_remote(credentials)
            except (OSError, sqlite3.Error) as exc:
                raise ConfigurationError(f"Could not persist remote credentials: {exc}") from exc
        except Exception:
            await client.aclose()
            raise

        previous, self._coalescer = self._coalescer, self._make_coalescer(client)
        if previous is not None:
            await previous.aclose()
        return document_id

    async def _resolve_document(
        self, client: GistClient, existing_document_id: str | None
    ) -> str:
        if existing_document_id:
            if await client.check_access(existing_document_id):
                client.use_document(existing_document_id)
                logger.info("Configured with existing document %r", existing_document_id)
                return existing_document_id
            logger.warning(
                "Document %r is not accessible; creating a new one", existing_document_id
            )
        try:
            return await client.create_document({})
        except RemoteStorageError as exc:
            raise ConfigurationError(f"Could not create remote document: {exc}") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Flush pending remote changes and release network resources."""
        if self._coalescer is not None:
            await self._coalescer.aclose()
            self._coalescer = None
        close = getattr(self._embedded_store, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> KVAdapter:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"KVAdapter(mode={self._detector.mode!r}, local_storage={self._local_storage!r})"


__all__ = ["KVAdapter"]
