"""Async Redis embedded store — requires redis[asyncio] (guarded import).

Redis plays the role of the host platform's shared key-value service: every
client pointed at the same instance and prefix shares one keyspace.

Classes
-------
- AsyncRedisStore  — redis.asyncio-backed embedded store
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from demoday_kv.storage.async_base import AsyncKeyValueStore

_REDIS_IMPORT_ERROR = (
    "AsyncRedisStore requires the 'redis' package with asyncio support. "
    "Install it with: pip install redis  or  pip install 'demoday-kv[redis]'"
)


class AsyncRedisStore(AsyncKeyValueStore):
    """Stores each key as a JSON string under ``<key_prefix><key>``.

    Parameters
    ----------
    url:
        Redis connection URL (e.g. ``"redis://localhost:6379/0"``).  When
        omitted, ``host``/``port``/``db``/``password`` are used.
    host:
        Redis server hostname.  Defaults to ``"localhost"``.
    port:
        Redis server port.  Defaults to ``6379``.
    db:
        Redis logical database index.  Defaults to ``0``.
    password:
        Optional authentication password.
    key_prefix:
        String prepended to every key.  Defaults to ``"demoday_kv:"``.
    """

    def __init__(
        self,
        url: str | None = None,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: str | None = None,
        key_prefix: str = "demoday_kv:",
    ) -> None:
        try:
            import redis.asyncio as redis_asyncio
        except ImportError as exc:
            raise ImportError(_REDIS_IMPORT_ERROR) from exc

        if url is not None:
            self._client = redis_asyncio.Redis.from_url(url, decode_responses=True)
        else:
            self._client = redis_asyncio.Redis(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
            )
        self._key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    # ------------------------------------------------------------------
    # AsyncKeyValueStore interface
    # ------------------------------------------------------------------

    async def get(self, key: str, default: Any = None) -> Any:
        raw: str | None = await self._client.get(self._key(key))
        if raw is None:
            return default
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        await self._client.set(self._key(key), json.dumps(value))

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def keys(self) -> Sequence[str]:
        """Return all keys under the configured prefix.

        Uses Redis SCAN to avoid blocking the server.
        """
        prefix_len = len(self._key_prefix)
        found: list[str] = []
        cursor: int = 0
        while True:
            cursor, batch = await self._client.scan(
                cursor=cursor, match=f"{self._key_prefix}*", count=100
            )
            found.extend(str(item)[prefix_len:] for item in batch)
            if cursor == 0:
                break
        return found

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    def __repr__(self) -> str:
        return f"AsyncRedisStore(key_prefix={self._key_prefix!r})"


__all__ = ["AsyncRedisStore"]
