"""Benchmark: remote write coalescing — API requests per logical write.

Simulates a judging burst (many star-rating clicks) against an in-process
fake of the gist API and counts how many HTTP requests reach it.
"""
from __future__ import annotations

import asyncio
import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import httpx

from demoday_kv.config import AdapterSettings
from demoday_kv.remote.client import GistClient
from demoday_kv.remote.coalescer import WriteCoalescer

_JUDGES: int = 8
_CLICKS_PER_JUDGE: int = 50


def _fake_api() -> tuple[httpx.MockTransport, list[str]]:
    content = {"value": "{}"}
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if request.method == "PATCH":
            content["value"] = json.loads(request.content)["files"]["database.json"]["content"]
        files = {"database.json": {"content": content["value"], "truncated": False}}
        return httpx.Response(200, json={"id": "bench", "files": files})

    return httpx.MockTransport(handler), methods


async def _burst() -> dict[str, object]:
    transport, methods = _fake_api()
    settings = AdapterSettings(batch_delay_seconds=0.05)
    coalescer = WriteCoalescer(
        GistClient("bench-token", "bench", settings=settings, transport=transport),
        settings=settings,
    )
    writes = 0
    t0 = time.perf_counter()
    for click in range(_CLICKS_PER_JUDGE):
        for judge in range(_JUDGES):
            await coalescer.set(f"evaluation-j{judge}-t{click % 10}", {"score": click % 5})
            writes += 1
        await asyncio.sleep(0.001)
    await coalescer.aclose()
    elapsed = time.perf_counter() - t0

    return {
        "operation": "remote_write_coalescing",
        "logical_writes": writes,
        "http_requests": len(methods),
        "patch_requests": methods.count("PATCH"),
        "writes_per_request": round(writes / max(len(methods), 1), 1),
        "total_seconds": round(elapsed, 4),
    }


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    result = asyncio.run(_burst())
    print(
        f"[bench_write_coalescing] {result['operation']}: "
        f"{result['logical_writes']} writes -> {result['http_requests']} requests"
    )
    return result


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "coalescing_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
