"""Benchmark: directory codec latency, per-call encode + strict decode p99."""
from __future__ import annotations

import json
import os
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_data_residency.directory.codec import decode, encode

_ITERATIONS: int = 5_000
_WARMUP: int = 200
_PAYLOAD_BYTES: int = 256


def bench_codec_latency() -> dict[str, object]:
    """Benchmark encode() followed by decode() on random directory names.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms.
    """
    payloads = [os.urandom(_PAYLOAD_BYTES) for _ in range(64)]

    # Warmup.
    for i in range(_WARMUP):
        decode(encode(payloads[i % len(payloads)]))

    latencies_ms: list[float] = []
    for i in range(_ITERATIONS):
        raw = payloads[i % len(payloads)]
        t0 = time.perf_counter()
        decode(encode(raw))
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "directory_codec_latency",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_codec_latency] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_codec_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
