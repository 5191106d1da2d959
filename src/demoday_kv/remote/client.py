"""HTTP client for the remote document store.

The remote store is a GitHub Gist: the whole logical document is kept as the
JSON-encoded content of one file inside the gist.  Reads fetch the gist and
decode that file; writes replace the file content in full with one PATCH.

Failures are raised as typed ``RemoteStorageError`` subclasses so that the
caching layer can tell rate limiting apart from bad credentials and from
transient faults.

Classes
-------
- GistClient  — read, replace and create the remote document
"""
from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from demoday_kv.config import AdapterSettings
from demoday_kv.errors import (
    AuthenticationError,
    DocumentNotFoundError,
    PermissionDeniedError,
    RateLimitError,
    RemoteStorageError,
)

logger = logging.getLogger(__name__)

_API_VERSION = "2022-11-28"
_USER_AGENT = "demoday-kv"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase


def raise_for_status(response: httpx.Response) -> None:
    """Translate a non-2xx response into the matching ``RemoteStorageError``.

    ``403`` is ambiguous on the Gist API: it signals both an exhausted rate
    limit and a missing permission.  The response message (or an exhausted
    ``x-ratelimit-remaining`` header) tells them apart.
    """
    if response.is_success:
        return
    status = response.status_code
    message = _error_message(response)
    if status == 401:
        raise AuthenticationError(message, status)
    if status == 429:
        raise RateLimitError(message, status)
    if status == 403:
        if "rate limit" in message.lower() or response.headers.get("x-ratelimit-remaining") == "0":
            raise RateLimitError(message, status)
        raise PermissionDeniedError(message, status)
    if status == 404:
        raise DocumentNotFoundError(message, status)
    raise RemoteStorageError(message, status)


class GistClient:
    """Authenticated access to one JSON document stored in a gist.

    Parameters
    ----------
    token:
        API access token sent as a bearer token.
    document_id:
        Gist identifier.  May be ``None`` until ``create_document`` is called.
    settings:
        Adapter settings (API base URL, file name, timeout).
    transport:
        Optional ``httpx`` transport, used to point the client at a fake API.
    """

    def __init__(
        self,
        token: str,
        document_id: str | None = None,
        *,
        settings: AdapterSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AdapterSettings()
        self._document_id = document_id
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": _API_VERSION,
                "User-Agent": _USER_AGENT,
            },
            timeout=httpx.Timeout(self._settings.request_timeout_seconds),
            transport=transport,
        )

    @property
    def document_id(self) -> str | None:
        return self._document_id

    @property
    def file_name(self) -> str:
        return self._settings.document_file_name

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_document_id(self) -> str:
        if not self._document_id:
            raise RemoteStorageError("No remote document configured.")
        return self._document_id

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise RemoteStorageError(f"{method} {url} failed: {exc}") from exc
        raise_for_status(response)
        return response

    def _file_payload(self, document: dict[str, Any]) -> dict[str, Any]:
        return {self.file_name: {"content": json.dumps(document, indent=2)}}

    def _decode_content(self, content: str) -> dict[str, Any]:
        try:
            data = json.loads(content)
        except ValueError:
            logger.error(
                "GistClient: %r in gist %r is not valid JSON, treating as empty",
                self.file_name,
                self._document_id,
            )
            return {}
        if not isinstance(data, dict):
            logger.error(
                "GistClient: %r in gist %r is not a JSON object, treating as empty",
                self.file_name,
                self._document_id,
            )
            return {}
        return data

    # ------------------------------------------------------------------
    # Document operations
    # ------------------------------------------------------------------

    async def fetch_document(self) -> dict[str, Any]:
        """Read the remote document.

        Returns
        -------
        dict
            The decoded document.  A missing file, empty content or content
            that is not a JSON object yields ``{}``.

        Raises
        ------
        RemoteStorageError
            On transport failure or a non-2xx response.
        """
        document_id = self._require_document_id()
        response = await self._request("GET", f"/gists/{document_id}")
        try:
            gist = response.json()
        except ValueError as exc:
            raise RemoteStorageError(f"Gist {document_id!r} returned invalid JSON") from exc

        file_entry = (gist.get("files") or {}).get(self.file_name) or {}
        content = file_entry.get("content") or ""
        if file_entry.get("truncated") and file_entry.get("raw_url"):
            # Large files are cut off in the API response; the raw URL has it all.
            raw_response = await self._request("GET", file_entry["raw_url"])
            content = raw_response.text
        if not content:
            return {}
        return self._decode_content(content)

    async def replace_document(self, document: dict[str, Any]) -> None:
        """Overwrite the remote document with ``document``.

        Raises
        ------
        RateLimitError
            The API refused the write because of rate limiting.
        AuthenticationError, PermissionDeniedError, DocumentNotFoundError
            The write can't succeed until the configuration changes.
        RemoteStorageError
            Any other failure.
        """
        document_id = self._require_document_id()
        await self._request(
            "PATCH",
            f"/gists/{document_id}",
            json={"files": self._file_payload(document)},
        )

    async def create_document(self, document: dict[str, Any] | None = None) -> str:
        """Create a private gist seeded with ``document`` (default ``{}``).

        The new id is adopted by this client and returned.
        """
        response = await self._request(
            "POST",
            "/gists",
            json={
                "description": self._settings.document_description,
                "public": False,
                "files": self._file_payload(document or {}),
            },
        )
        try:
            new_id = str(response.json()["id"])
        except (ValueError, KeyError, TypeError) as exc:
            raise RemoteStorageError("Gist creation response has no id") from exc
        self._document_id = new_id
        logger.info("GistClient: created gist %r", new_id)
        return new_id

    async def check_access(self, document_id: str) -> bool:
        """Return True if ``document_id`` can be read with this token."""
        try:
            await self._request("GET", f"/gists/{document_id}")
        except RemoteStorageError as exc:
            logger.warning("GistClient: gist %r is not accessible: %s", document_id, exc)
            return False
        return True

    def use_document(self, document_id: str) -> None:
        """Point the client at an existing gist."""
        self._document_id = document_id

    async def aclose(self) -> None:
        await self._client.aclose()

    def __repr__(self) -> str:
        return f"GistClient(document_id={self._document_id!r})"


__all__ = ["GistClient", "raise_for_status"]
