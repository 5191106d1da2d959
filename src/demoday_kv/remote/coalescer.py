"""Write coalescing and caching in front of the remote document store.

The remote API has a strict hourly request ceiling while judges click star
ratings many times a minute.  ``WriteCoalescer`` keeps that affordable:

* Reads are served from an in-memory copy of the remote document that is
  trusted for ``cache_ttl_seconds``.
* Writes land in a pending-change queue and in the cached copy at once, so
  a read right after a write sees the new value.  A debounce timer fires
  ``batch_delay_seconds`` after the latest change and flushes the whole queue
  with one read-merge-write cycle.
* An ``asyncio.Lock`` serialises flushes.  A flush that finds the lock held
  waits for it; it is never dropped.

Failed writes are put back in the queue underneath any newer writes and
retried by the timer.  Rate limiting and transient faults retry after the
normal delay.  Rejected credentials retry with capped exponential backoff and
are reported through ``last_error``.

Classes
-------
- WriteCoalescer  — cache, pending-change queue, debounce timer and write lock

Constants
---------
- DELETED  — pending-queue marker meaning "remove this key"
"""
from __future__ import annotations

import asyncio
import copy
import logging
import time
from typing import Any, Callable

from demoday_kv.config import AdapterSettings
from demoday_kv.errors import RateLimitError, RemoteStorageError
from demoday_kv.remote.client import GistClient

logger = logging.getLogger(__name__)


class _Deleted:
    __slots__ = ()

    def __repr__(self) -> str:
        return "DELETED"


DELETED: Any = _Deleted()


def _apply(document: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``document`` with ``changes`` applied in order."""
    merged = dict(document)
    for key, value in changes.items():
        if value is DELETED:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


class WriteCoalescer:
    """Cached, batched access to the document behind a ``GistClient``.

    Parameters
    ----------
    client:
        Client for the remote document.  Owned by the coalescer and closed
        by ``aclose``.
    settings:
        Supplies the cache TTL, batch delay and maximum retry delay.
    clock:
        Monotonic clock used for cache ageing.  Injected by tests.
    """

    def __init__(
        self,
        client: GistClient,
        *,
        settings: AdapterSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._settings = settings or AdapterSettings()
        self._clock = clock

        self._cache: dict[str, Any] | None = None
        self._cache_timestamp: float | None = None
        # Bumped on every successful flush; lets a slow read notice that
        # its fetched copy predates a write that landed meanwhile.
        self._generation = 0

        self._pending: dict[str, Any] = {}
        self._inflight: dict[str, Any] = {}
        self._lock = asyncio.Lock()
        self._timer: asyncio.Task[None] | None = None

        self._permanent_failures = 0
        self._last_error: RemoteStorageError | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def client(self) -> GistClient:
        return self._client

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_changes(self) -> dict[str, Any]:
        """Snapshot of the queue; deletions appear as ``DELETED``."""
        return dict(self._pending)

    @property
    def last_error(self) -> RemoteStorageError | None:
        """The error of the most recent failed flush, cleared on success."""
        return self._last_error

    @property
    def flush_scheduled(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def cache_valid(self) -> bool:
        if self._cache is None or self._cache_timestamp is None:
            return False
        return self._clock() - self._cache_timestamp < self._settings.cache_ttl_seconds

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _overlay(self, document: dict[str, Any]) -> dict[str, Any]:
        return _apply(_apply(document, self._inflight), self._pending)

    async def _load_document(self) -> dict[str, Any]:
        if self.cache_valid():
            assert self._cache is not None
            return self._cache

        generation = self._generation
        try:
            fetched = await self._client.fetch_document()
        except RemoteStorageError as exc:
            logger.warning(
                "WriteCoalescer: cannot read remote document, serving last known copy: %s",
                exc,
            )
            self._cache = self._overlay(self._cache or {})
            return self._cache

        if generation != self._generation and self._cache is not None:
            # A flush finished while we were fetching; its result is newer.
            return self._cache
        self._cache = self._overlay(fetched)
        self._cache_timestamp = self._clock()
        logger.debug("WriteCoalescer: cached remote document (%d keys)", len(self._cache))
        return self._cache

    async def get(self, key: str, default: Any = None) -> Any:
        document = await self._load_document()
        if key not in document:
            return default
        return copy.deepcopy(document[key])

    async def keys(self) -> list[str]:
        return list(await self._load_document())

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def set(self, key: str, value: Any) -> None:
        """Queue ``value`` for ``key`` and update the cached copy at once."""
        self._pending[key] = value
        if self._cache is None:
            self._cache = {}
        self._cache[key] = value
        logger.debug(
            "WriteCoalescer: queued %r (%d pending)", key, len(self._pending)
        )
        self._schedule_flush()

    async def delete(self, key: str) -> None:
        """Queue removal of ``key`` and drop it from the cached copy."""
        self._pending[key] = DELETED
        if self._cache is not None:
            self._cache.pop(key, None)
        logger.debug("WriteCoalescer: queued deletion of %r", key)
        self._schedule_flush()

    def _schedule_flush(self, delay: float | None = None) -> None:
        """(Re)arm the debounce timer to fire ``delay`` seconds from now."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        if delay is None:
            delay = self._settings.batch_delay_seconds
        self._timer = asyncio.get_running_loop().create_task(self._flush_later(delay))

    async def _flush_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        # Past this point a reschedule must not cancel the running flush.
        if self._timer is asyncio.current_task():
            self._timer = None
        await self.flush()

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    async def flush(self) -> None:
        """Write every pending change to the remote document in one request.

        Does nothing when the queue is empty.  Waits for a flush already in
        progress.  Failures are logged and the changes re-queued; they are
        never raised.
        """
        async with self._lock:
            if not self._pending:
                return
            changes = self._pending
            self._pending = {}
            self._inflight = changes
            try:
                await self._write(changes)
            except RemoteStorageError as exc:
                self._handle_failure(changes, exc)
            except BaseException:
                self._requeue(changes)
                raise
            finally:
                self._inflight = {}

    async def _write(self, changes: dict[str, Any]) -> None:
        if self.cache_valid():
            assert self._cache is not None
            base = self._cache
        else:
            try:
                base = await self._client.fetch_document()
            except RemoteStorageError:
                if self._cache is None or self._cache_timestamp is None:
                    # Never seen the remote document; writing now would clobber it.
                    raise
                logger.warning("WriteCoalescer: merging onto expired cached copy")
                base = self._cache

        merged = _apply(base, changes)
        await self._client.replace_document(merged)

        self._cache = _apply(merged, self._pending)
        self._cache_timestamp = self._clock()
        self._generation += 1
        self._permanent_failures = 0
        self._last_error = None
        logger.info("WriteCoalescer: saved %d change(s) to remote document", len(changes))

    def _requeue(self, changes: dict[str, Any]) -> None:
        # Newer writes queued during the flush win over the failed snapshot.
        requeued = dict(changes)
        requeued.update(self._pending)
        self._pending = requeued

    def _handle_failure(self, changes: dict[str, Any], exc: RemoteStorageError) -> None:
        self._last_error = exc
        self._requeue(changes)
        if isinstance(exc, RateLimitError):
            logger.warning(
                "WriteCoalescer: rate limit reached, %d change(s) stay pending",
                len(self._pending),
            )
            delay = self._settings.batch_delay_seconds
        elif exc.retryable:
            logger.warning(
                "WriteCoalescer: remote write failed, %d change(s) stay pending: %s",
                len(self._pending),
                exc,
            )
            delay = self._settings.batch_delay_seconds
        else:
            self._permanent_failures += 1
            delay = min(
                self._settings.batch_delay_seconds * 2**self._permanent_failures,
                self._settings.max_retry_delay_seconds,
            )
            logger.error(
                "WriteCoalescer: remote document rejected the write (%s); "
                "check the token permissions. Retrying in %.1fs",
                exc,
                delay,
            )
        self._schedule_flush(delay)

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Flush pending changes, stop the timer and close the HTTP client."""
        await self.flush()
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
            try:
                await timer
            except asyncio.CancelledError:
                pass
        if self._pending:
            logger.warning(
                "WriteCoalescer: closing with %d unsynchronised change(s)",
                len(self._pending),
            )
        await self._client.aclose()

    def __repr__(self) -> str:
        return (
            f"WriteCoalescer(client={self._client!r}, pending={len(self._pending)}, "
            f"cache_valid={self.cache_valid()})"
        )


__all__ = ["DELETED", "WriteCoalescer"]
