#!/usr/bin/env python3
"""Example: Storage Backends

Runs the same judging workflow against the in-memory, filesystem and SQLite
local backends, and against an embedded store.

Usage:
    python examples/02_storage_backends.py

Requirements:
    pip install demoday-kv
"""
from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import demoday_kv
from demoday_kv import (
    AsyncInMemoryStore,
    FilesystemBackend,
    InMemoryBackend,
    KVAdapter,
    SQLiteBackend,
)


async def demo_backend(label: str, adapter: KVAdapter) -> None:
    async with adapter:
        await adapter.set("evaluations", [{"judge_id": "j1", "project_id": "t1", "score": 4}])
        evaluations = await adapter.get("evaluations", [])
        info = await adapter.storage_info()
        print(f"  [{label}] mode={info.mode.value} evaluations={len(evaluations)}")


async def main() -> None:
    print(f"demoday-kv version: {demoday_kv.__version__}")

    print("\nIn-memory backend:")
    await demo_backend("memory", KVAdapter(local_storage=InMemoryBackend()))

    with tempfile.TemporaryDirectory() as tmp:
        print("\nFilesystem backend:")
        await demo_backend(
            "filesystem", KVAdapter(local_storage=FilesystemBackend(Path(tmp) / "kv"))
        )

        print("\nSQLite backend:")
        await demo_backend(
            "sqlite", KVAdapter(local_storage=SQLiteBackend(Path(tmp) / "kv.db"))
        )

    print("\nEmbedded store:")
    await demo_backend(
        "embedded",
        KVAdapter(local_storage=InMemoryBackend(), embedded_store=AsyncInMemoryStore()),
    )


if __name__ == "__main__":
    asyncio.run(main())
