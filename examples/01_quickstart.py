#!/usr/bin/env python3
"""Example: Quickstart — demoday-kv

Minimal working example: store judging data through the adapter, read it
back, and inspect which backend was selected.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install demoday-kv
"""
from __future__ import annotations

import asyncio

import demoday_kv
from demoday_kv import InMemoryBackend, KVAdapter


async def main() -> None:
    print(f"demoday-kv version: {demoday_kv.__version__}")

    # No embedded store and no remote credentials: local shared storage.
    storage = InMemoryBackend()
    async with KVAdapter(local_storage=storage) as kv:
        await kv.set("programs", [{"id": "p1", "name": "Spring Demo Day"}])
        await kv.set("judges", [{"id": "j1", "name": "Ada"}, {"id": "j2", "name": "Grace"}])

        info = await kv.storage_info()
        print(f"Mode: {info.mode.value}")
        print(f"  {info.details}")

        judges = await kv.get("judges", [])
        print(f"Judges: {', '.join(judge['name'] for judge in judges)}")
        print(f"Keys: {await kv.keys()}")

    # A second adapter on the same storage (another role) sees the same data.
    async with KVAdapter(local_storage=storage) as judge_view:
        programs = await judge_view.get("programs", [])
        print(f"Judge sees {len(programs)} program(s)")


if __name__ == "__main__":
    asyncio.run(main())
