"""Benchmark: local shared-document latency — per-call p50/p99.

Measures ``SharedDocumentStore.set`` as the shared document grows, since
every write re-serialises the whole document.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from demoday_kv.shared import SharedDocumentStore
from demoday_kv.storage.memory import InMemoryBackend

_WARMUP: int = 200
_ITERATIONS: int = 2_000


def bench_local_set_latency() -> dict[str, object]:
    """Benchmark SharedDocumentStore.set() per-call latency.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p50_latency_ms, p99_latency_ms.
    """
    store = SharedDocumentStore(InMemoryBackend(), "meetup_shared_db_v2")

    for i in range(_WARMUP):
        store.set(f"evaluation-warmup-{i}", {"judge_id": "j1", "score": i % 5})

    latencies_ms: list[float] = []
    for i in range(_ITERATIONS):
        value = {"judge_id": f"j{i % 7}", "project_id": f"t{i}", "score": i % 5}
        t0 = time.perf_counter()
        store.set(f"evaluation-{i}", value)
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "local_set_latency",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_local_latency] {result['operation']}: "
        f"p50={result['p50_latency_ms']:.4f}ms  "
        f"p99={result['p99_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_local_set_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "local_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
