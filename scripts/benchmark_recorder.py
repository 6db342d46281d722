#!/usr/bin/env python
"""Local benchmark for the cost of recording and aggregating traces."""

from __future__ import annotations

import argparse
import json
import math
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import List

from tuneup_profiler.config import config
from tuneup_profiler.demo_utils import run_synthetic_request
from tuneup_profiler.recorder import profile
from tuneup_profiler.schemas import export_trace
from tuneup_profiler.timing import count_steps, summarize_timings, summarize_trace


def percentile(values: List[float], pct: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    position = pct * (len(ordered) - 1)
    lower = math.floor(position)
    upper = math.ceil(position)
    if lower == upper:
        return ordered[int(position)]
    weight = position - lower
    return ordered[lower] * (1 - weight) + ordered[upper] * weight


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark trace recording and export locally.")
    parser.add_argument("--n", type=int, default=200, help="Number of traces to record.")
    parser.add_argument("--items", type=int, default=20, help="Synthetic records per trace.")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("outputs/benchmarks/recorder.json"),
        help="Path where benchmark metrics JSON will be written.",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for synthetic workloads.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output_path = args.output
    output_path.parent.mkdir(parents=True, exist_ok=True)

    bare_ms: List[float] = []
    for _ in range(args.n):
        start = perf_counter()
        run_synthetic_request(args.items, seed=args.seed)
        bare_ms.append((perf_counter() - start) * 1000)

    recorded_ms: List[float] = []
    export_ms: List[float] = []
    summaries = []
    steps = 0
    for _ in range(args.n):
        root = profile(run_synthetic_request, args.items, seed=args.seed)
        recorded_ms.append(root.duration_ms)
        steps = count_steps(root)
        start = perf_counter()
        export_trace(root, config.default_layer)
        export_ms.append((perf_counter() - start) * 1000)
        summaries.append(summarize_trace(root, config.default_layer))

    breakdown = summarize_timings(summaries)
    bare_avg = sum(bare_ms) / len(bare_ms) if bare_ms else 0.0
    recorded_avg = sum(recorded_ms) / len(recorded_ms) if recorded_ms else 0.0
    per_step_overhead_us = (recorded_avg - bare_avg) * 1000 / steps if steps else 0.0

    payload = {
        "traces": args.n,
        "steps_per_trace": steps,
        "bare_ms": {"avg": bare_avg, "p50": percentile(bare_ms, 0.5), "p95": percentile(bare_ms, 0.95)},
        "recorded_ms": {
            "avg": recorded_avg,
            "p50": percentile(recorded_ms, 0.5),
            "p95": percentile(recorded_ms, 0.95),
        },
        "export_ms": {"p50": percentile(export_ms, 0.5), "p95": percentile(export_ms, 0.95)},
        "per_step_overhead_us": per_step_overhead_us,
        "breakdown_ms": breakdown.as_dict(),
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    print(f"Benchmark complete → {output_path}")
    print(
        f"Per-trace bare={bare_avg:.3f}ms recorded={recorded_avg:.3f}ms "
        f"overhead={per_step_overhead_us:.2f}us/step | Breakdown model={breakdown.model_ms:.2f}ms "
        f"view={breakdown.view_ms:.2f}ms controller={breakdown.controller_ms:.2f}ms"
    )


if __name__ == "__main__":
    main()
