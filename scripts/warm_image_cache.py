#!/usr/bin/env python3
"""
Warm a cache directory with http.cat images for a list of status codes.

Runs the same read-through path as the service: codes already on disk are
left alone, misses are fetched from the origin and written to the cache.
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from shared.config import DEFAULT_ORIGIN_URL
from shared.logging import configure_logging
from shared.metrics import get_metrics_collector
from service_cache.app.caching import CacheCoordinator, warm_cache
from service_cache.app.origin import HttpCatClient
from service_cache.app.storage import FileKeyStore


async def warm(*, cache_dir: Path, origin_url: str, codes, concurrency: int, timeout: float) -> dict:
    """Execute cache warming and return the summary."""
    store = FileKeyStore(cache_dir)
    store.ensure_root()
    metrics = get_metrics_collector("cache-warm")
    fetcher = HttpCatClient(origin_url, timeout=timeout, metrics=metrics)
    try:
        coordinator = CacheCoordinator(store, fetcher, metrics=metrics)
        return await warm_cache(coordinator, codes, concurrency=concurrency)
    finally:
        await fetcher.aclose()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Warm the image cache for a list of HTTP status codes.")
    parser.add_argument("codes", nargs="+", help="HTTP status codes to warm, e.g. 200 404 418")
    parser.add_argument("-c", "--cache", type=Path, required=True, help="Path to cache directory")
    parser.add_argument("--origin-url", default=os.getenv("HTTPCAT_CACHE_ORIGIN_URL", DEFAULT_ORIGIN_URL), help="Origin base URL")
    parser.add_argument("--concurrency", type=int, default=5, help="Concurrent origin fetches")
    parser.add_argument("--timeout", type=float, default=10.0, help="Origin request timeout in seconds")
    parser.add_argument("--log-level", default="warning", help="Log level")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("cache-warm", args.log_level)
    try:
        summary = asyncio.run(
            warm(
                cache_dir=args.cache,
                origin_url=args.origin_url,
                codes=args.codes,
                concurrency=args.concurrency,
                timeout=args.timeout,
            )
        )
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[cache-warm] failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(summary, indent=2))

    if args.output:
        args.output.write_text(json.dumps(summary, indent=2))

    return 0 if not summary["errors"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
