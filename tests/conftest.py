"""Shared fixtures: an in-process fake of the Gist REST API and a fake clock."""
from __future__ import annotations

import asyncio
import itertools
import json
from typing import Any

import httpx
import pytest

from demoday_kv.config import AdapterSettings

TEST_TOKEN = "test-token"
FILE_NAME = "database.json"


class FakeGistAPI:
    """Minimal stand-in for ``api.github.com/gists`` served through MockTransport.

    Records every request, keeps gist file contents in memory, and lets tests
    queue failure responses per HTTP method.
    """

    def __init__(self, token: str = TEST_TOKEN) -> None:
        self.token = token
        self.gists: dict[str, dict[str, str]] = {}
        self.requests: list[httpx.Request] = []
        self.failures: dict[str, list[tuple[int, dict[str, Any]]]] = {}
        self.patch_delay = 0.0
        self.truncate = False
        self.active_patches = 0
        self.max_concurrent_patches = 0
        self._ids = itertools.count(1)

    # -- test helpers ---------------------------------------------------

    def seed(self, gist_id: str, document: dict[str, Any] | None = None) -> None:
        self.gists[gist_id] = {FILE_NAME: json.dumps(document or {})}

    def document(self, gist_id: str) -> dict[str, Any]:
        return json.loads(self.gists[gist_id][FILE_NAME])

    def fail(self, method: str, status: int, message: str = "failure") -> None:
        self.failures.setdefault(method, []).append((status, {"message": message}))

    def count(self, method: str) -> int:
        return sum(1 for request in self.requests if request.method == method)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # -- request handling ----------------------------------------------

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Bad credentials"})

        if request.method == "PATCH":
            self.active_patches += 1
            self.max_concurrent_patches = max(self.max_concurrent_patches, self.active_patches)
            try:
                if self.patch_delay:
                    await asyncio.sleep(self.patch_delay)
                return self._dispatch(request)
            finally:
                self.active_patches -= 1
        return self._dispatch(request)

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        queued = self.failures.get(request.method)
        if queued:
            status, body = queued.pop(0)
            return httpx.Response(status, json=body)

        parts = [part for part in request.url.path.split("/") if part]
        if parts[0] == "raw":
            gist_id, name = parts[1], parts[2]
            return httpx.Response(200, text=self.gists[gist_id][name])
        if request.method == "POST" and parts == ["gists"]:
            gist_id = f"gist-{next(self._ids)}"
            body = json.loads(request.content)
            self.gists[gist_id] = {
                name: entry["content"] for name, entry in body["files"].items()
            }
            return httpx.Response(201, json={"id": gist_id, "public": body["public"]})

        gist_id = parts[1]
        if gist_id not in self.gists:
            return httpx.Response(404, json={"message": "Not Found"})
        if request.method == "GET":
            return httpx.Response(200, json={"id": gist_id, "files": self._files(gist_id)})
        if request.method == "PATCH":
            body = json.loads(request.content)
            for name, entry in body["files"].items():
                self.gists[gist_id][name] = entry["content"]
            return httpx.Response(200, json={"id": gist_id, "files": self._files(gist_id)})
        return httpx.Response(405, json={"message": "Method not allowed"})

    def _files(self, gist_id: str) -> dict[str, Any]:
        files = {}
        for name, content in self.gists[gist_id].items():
            files[name] = {
                "filename": name,
                "content": content[:10] if self.truncate else content,
                "truncated": self.truncate,
                "raw_url": f"https://gist.githubusercontent.com/raw/{gist_id}/{name}",
            }
        return files


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def gist_api() -> FakeGistAPI:
    return FakeGistAPI()


@pytest.fixture()
def transport(gist_api: FakeGistAPI) -> httpx.MockTransport:
    return gist_api.transport()


@pytest.fixture()
def fast_settings() -> AdapterSettings:
    """Settings with short delays so timer-driven flushes finish quickly."""
    return AdapterSettings(
        batch_delay_seconds=0.05,
        max_retry_delay_seconds=0.2,
        request_timeout_seconds=5.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
