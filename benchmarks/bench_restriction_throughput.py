"""Benchmark: restriction resolution throughput, records built per second.

Each iteration builds a full RestrictionRecord from operator-style input:
aliases in mixed case, comma-joined lists, repeated flags and exclusions.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_data_residency.restrictions.records import build_restriction

_ITERATIONS: int = 10_000


def bench_restriction_throughput() -> dict[str, object]:
    """Benchmark build_restriction() throughput.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms.
    """
    start = time.perf_counter()
    for i in range(_ITERATIONS):
        build_restriction(
            "config",
            f"team/reports/{i}",
            provider=["Amazon,gcp", "azure"],
            exclude_provider=["AWS"],
            region=["eu,Asia", "northamerica"],
            exclude_region=["uk"],
        )
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "restriction_resolution_throughput",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _ITERATIONS * 1000, 4),
        "p99_latency_ms": 0.0,
    }
    print(
        f"[bench_restriction_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_restriction_throughput()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "throughput_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
