#!/usr/bin/env python
"""HTTP benchmark that drives the running demo API and checks trace isolation."""

from __future__ import annotations

import argparse
import asyncio
import math
from time import perf_counter
from typing import List, Tuple

import httpx


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
    parser = argparse.ArgumentParser(description="Benchmark the /v1/demo endpoint under concurrency.")
    parser.add_argument("--n", type=int, default=100, help="Total requests to send.")
    parser.add_argument("--items", type=int, default=10, help="Synthetic records per request.")
    parser.add_argument("--delay-ms", type=float, default=1.0, help="Sleep added to every leaf step.")
    parser.add_argument("--concurrency", type=int, default=4, help="Concurrent in-flight requests.")
    parser.add_argument("--url", type=str, default="http://127.0.0.1:8000/v1/demo", help="Target demo endpoint.")
    parser.add_argument("--timeout", type=float, default=30.0, help="HTTP client timeout in seconds.")
    return parser.parse_args()


async def get_demo(
    client: httpx.AsyncClient,
    url: str,
    params: dict,
    sem: asyncio.Semaphore,
) -> Tuple[float, float | None, bool]:
    async with sem:
        start = perf_counter()
        try:
            response = await client.get(url, params=params)
            latency_ms = (perf_counter() - start) * 1000
            traced = response.headers.get("X-Tuneup-Total-Ms")
            return latency_ms, float(traced) if traced else None, response.status_code == 200
        except httpx.HTTPError:
            return (perf_counter() - start) * 1000, None, False


async def main_async(args: argparse.Namespace) -> None:
    params = {"items": args.items, "delay_ms": args.delay_ms}

    async with httpx.AsyncClient(timeout=args.timeout) as client:
        base = _derive_base_url(args.url)
        health = await client.get(f"{base}/health")
        if health.status_code != 200:
            raise RuntimeError("API health check failed.")

        sem = asyncio.Semaphore(max(1, args.concurrency))
        tasks = [get_demo(client, args.url, params, sem) for _ in range(args.n)]
        results = await asyncio.gather(*tasks)

        last = await client.get(f"{base}/v1/traces/last")
        last.raise_for_status()
        expected_children = 1
        actual_children = len(last.json()["children"])

    latencies = [lat for lat, _, success in results if success]
    traced = [value for _, value, success in results if success and value is not None]
    total_requests = len(results)
    errors = sum(0 if success else 1 for _, _, success in results)
    error_rate = errors / total_requests if total_requests else 0.0

    print(
        f"API benchmark (requests={total_requests}, concurrency={args.concurrency}) "
        f"latency p50={percentile(latencies, 0.5):.2f}ms p95={percentile(latencies, 0.95):.2f}ms "
        f"traced p50={percentile(traced, 0.5):.2f}ms error_rate={error_rate:.2%}"
    )
    if actual_children != expected_children:
        raise RuntimeError(
            f"Last trace has {actual_children} top-level step(s); concurrent traces leaked into each other."
        )


def _derive_base_url(demo_url: str) -> str:
    if "/v1/demo" in demo_url:
        return demo_url.rsplit("/v1/demo", 1)[0]
    return demo_url.rstrip("/")


def main() -> None:
    args = parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
