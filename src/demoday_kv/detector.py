"""Backend selection.

``BackendDetector`` decides once which backend an adapter routes to, in
priority order:

1. the embedded store, if one was supplied and answers a ``keys()`` probe;
2. the remote document store, if credentials are persisted in local storage;
3. the local shared document.

Probe failures are logged and treated as "not available"; detection never
raises.  The decision is memoised, and callers racing the first detection
share one in-flight probe.

Classes
-------
- BackendDetector  — memoised backend selection
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3

from demoday_kv.config import AdapterSettings
from demoday_kv.models import RemoteCredentials, StorageMode
from demoday_kv.storage.async_base import AsyncKeyValueStore
from demoday_kv.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class BackendDetector:
    """Resolve and remember the active ``StorageMode``.

    Parameters
    ----------
    local_storage:
        Local storage holding the persisted remote credentials.
    embedded_store:
        Optional host-provided key-value store, probed first.
    settings:
        Supplies the storage keys of the persisted credentials.
    """

    def __init__(
        self,
        local_storage: StorageBackend,
        embedded_store: AsyncKeyValueStore | None = None,
        settings: AdapterSettings | None = None,
    ) -> None:
        self._local_storage = local_storage
        self._embedded_store = embedded_store
        self._settings = settings or AdapterSettings()
        self._mode: StorageMode | None = None
        self._credentials: RemoteCredentials | None = None
        self._detection: asyncio.Task[StorageMode] | None = None

    @property
    def mode(self) -> StorageMode | None:
        """The resolved mode, or ``None`` before the first detection."""
        return self._mode

    @property
    def credentials(self) -> RemoteCredentials | None:
        """Credentials in use when the mode is ``REMOTE``."""
        return self._credentials

    async def detect(self) -> StorageMode:
        """Return the active mode, probing on the first call only."""
        if self._mode is not None:
            return self._mode
        if self._detection is None:
            self._detection = asyncio.ensure_future(self._resolve())
        detection = self._detection
        try:
            return await asyncio.shield(detection)
        except Exception:
            # Forget the failed task so the next call runs detection again.
            if self._detection is detection and detection.done():
                self._detection = None
            raise

    async def _resolve(self) -> StorageMode:
        if await self._probe_embedded():
            mode = StorageMode.EMBEDDED
            logger.info("Using the embedded key-value store; data is shared by all users")
        else:
            self._credentials = self.load_credentials()
            if self._credentials is not None:
                mode = StorageMode.REMOTE
                logger.info(
                    "Using remote document %r; data is synchronised across devices",
                    self._credentials.document_id,
                )
            else:
                mode = StorageMode.LOCAL
                logger.info("Using local shared storage; data is shared on this machine only")
        # A reconfiguration may have won the race while we were probing.
        if self._mode is None:
            self._mode = mode
        return self._mode

    async def _probe_embedded(self) -> bool:
        if self._embedded_store is None:
            return False
        try:
            await self._embedded_store.keys()
        except Exception as exc:
            logger.warning(
                "Embedded key-value store not reachable, falling back: %s", exc
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Persisted credentials
    # ------------------------------------------------------------------

    def load_credentials(self) -> RemoteCredentials | None:
        """Read the persisted token and document id from local storage."""
        try:
            token = self._local_storage.get(self._settings.token_storage_key)
            document_id = self._local_storage.get(self._settings.document_id_storage_key)
        except (OSError, sqlite3.Error, UnicodeDecodeError) as exc:
            logger.warning("Cannot read remote credentials from local storage: %s", exc)
            return None
        if not token or not document_id:
            return None
        return RemoteCredentials(token=token, document_id=document_id)

    def use_remote(self, credentials: RemoteCredentials) -> None:
        """Persist ``credentials`` and switch to ``StorageMode.REMOTE``.

        Raises
        ------
        OSError, sqlite3.Error
            If local storage cannot persist the credentials.
        """
        self._local_storage.save(self._settings.document_id_storage_key, credentials.document_id)
        self._local_storage.save(self._settings.token_storage_key, credentials.token)
        self._credentials = credentials
        self._mode = StorageMode.REMOTE
        logger.info("Configured remote document %r", credentials.document_id)

    def __repr__(self) -> str:
        return f"BackendDetector(mode={self._mode!r})"


__all__ = ["BackendDetector"]
