#!/usr/bin/env python3
"""Concurrent SET/GET benchmark against a running C-Store server.

Usage: python3 scripts/benchmark.py [--base-url http://localhost:3000] [COUNT ...]

For every COUNT (default 10 100 1000) fires COUNT concurrent POSTs, then
COUNT concurrent GETs against pre-populated keys, and prints a summary.
"""
from __future__ import annotations

import argparse
import asyncio
import random
import sys
import time
from typing import Any, Awaitable, Callable, Dict, List

import httpx

NAMESPACE = 'benchmark'


async def run_concurrent(op: Callable[[int], Awaitable[httpx.Response]], count: int) -> Dict[str, Any]:
    start = time.perf_counter()
    results = await asyncio.gather(*(op(i) for i in range(count)), return_exceptions=True)
    duration_ms = (time.perf_counter() - start) * 1000
    errors = [r for r in results if isinstance(r, Exception) or r.status_code >= 400]
    return {
        'count': count,
        'duration': round(duration_ms),
        'average': round(duration_ms / count) if count else 0,
        'success': count - len(errors),
        'errors': len(errors),
        'throughput': round(count / duration_ms * 1000) if duration_ms else 0,
        'sample_errors': [repr(e) for e in errors[:5]],
    }


def print_result(kind: str, r: Dict[str, Any]) -> None:
    print(f"\nResults for {r['count']} concurrent {kind} operations:")
    print(f"   Success: {r['success']}/{r['count']}")
    print(f"   Errors: {r['errors']}")
    print(f"   Total time: {r['duration']}ms")
    print(f"   Average response time: {r['average']}ms")
    print(f"   Throughput: {r['throughput']} req/sec")
    if r['sample_errors']:
        print("   Sample errors:", r['sample_errors'])


def print_summary(results: Dict[str, Dict[str, Any]]) -> None:
    print('\nBENCHMARK SUMMARY REPORT')
    print('=' * 60)
    for kind in ('SET', 'GET'):
        rows = [(k, r) for k, r in results.items() if k.startswith(kind + '_')]
        if not rows:
            continue
        print(f'\n{kind} operations:')
        print(f"{'Connections':>12} {'Duration ms':>12} {'Success %':>10} {'Avg ms':>8} {'req/sec':>9}")
        for key, r in rows:
            rate = r['success'] / r['count'] * 100 if r['count'] else 0.0
            print(f"{key.split('_')[1]:>12} {r['duration']:>12} {rate:>10.1f} {r['average']:>8} {r['throughput']:>9}")


async def benchmark(base_url: str, counts: List[int]) -> int:
    limits = httpx.Limits(max_connections=max(counts))
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0, limits=limits) as client:
        try:
            health = await client.get('/health')
            health.raise_for_status()
        except httpx.HTTPError as e:
            print(f"Server is not running or not accessible at {base_url}: {e}")
            return 1
        print(f"Server is healthy (backend: {health.json().get('backend')})")

        results: Dict[str, Dict[str, Any]] = {}
        for count in counts:
            stamp = int(time.time() * 1000)

            async def do_set(i: int, stamp: int = stamp) -> httpx.Response:
                return await client.post(f'/api/{NAMESPACE}/test_{i}_{stamp}', json={'value': f'test_value_{i}_{random.random()}'})

            results[f'SET_{count}'] = r = await run_concurrent(do_set, count)
            print_result('SET', r)

        top = max(counts)
        print('\nPre-populating test data...')
        for i in range(top):
            await client.post(f'/api/{NAMESPACE}/get_test_{i}', json={'value': f'value_{i}'})

        for count in counts:
            async def do_get(i: int) -> httpx.Response:
                return await client.get(f'/api/{NAMESPACE}/get_test_{i % top}')

            results[f'GET_{count}'] = r = await run_concurrent(do_get, count)
            print_result('GET', r)

    print_summary(results)
    return 0


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument('--base-url', default='http://localhost:3000')
    p.add_argument('counts', nargs='*', type=int, default=[10, 100, 1000])
    args = p.parse_args(argv)
    counts = [c for c in args.counts if c > 0] or [10, 100, 1000]
    return asyncio.run(benchmark(args.base_url, counts))


if __name__ == '__main__':
    sys.exit(main())
