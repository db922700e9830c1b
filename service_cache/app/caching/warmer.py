"""
Cache warming: pre-populate the store for a list of HTTP codes.
"""

import asyncio
from typing import Any, Dict, Iterable

from shared.errors import CacheServiceException
from shared.logging import get_logger
from ..keys import CacheKey
from .coordinator import CacheCoordinator, CacheOutcome

logger = get_logger("cache.warmer")


async def warm_cache(coordinator: CacheCoordinator, codes: Iterable[str], concurrency: int = 5) -> Dict[str, Any]:
    """
    Read every code through the coordinator so misses are backfilled.

    Returns a summary dictionary with the codes that were already cached,
    backfilled, missing at the origin, invalid, or failed.
    """
    summary: Dict[str, Any] = {
        "planned": 0,
        "hits": [],
        "backfilled": [],
        "missing": [],
        "invalid": [],
        "errors": {},
    }

    keys = []
    for code in codes:
        summary["planned"] += 1
        try:
            keys.append(CacheKey.parse(code))
        except CacheServiceException:
            summary["invalid"].append(code)

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _warm_entry(key: CacheKey):
        async with semaphore:
            return await coordinator.get(key)

    results = await asyncio.gather(*(_warm_entry(key) for key in keys), return_exceptions=True)
    for key, outcome in zip(keys, results):
        if isinstance(outcome, Exception):
            logger.error("Cache warm task failed", key=key.value, error=str(outcome))
            summary["errors"][key.value] = str(outcome)
        elif outcome.outcome is CacheOutcome.HIT:
            summary["hits"].append(key.value)
        elif outcome.outcome is CacheOutcome.BACKFILLED:
            summary["backfilled"].append(key.value)
        else:
            summary["missing"].append(key.value)

    logger.info(
        "Cache warm completed",
        planned=summary["planned"],
        hits=len(summary["hits"]),
        backfilled=len(summary["backfilled"]),
        missing=len(summary["missing"]),
        invalid=len(summary["invalid"]),
        errors=len(summary["errors"]),
    )
    return summary
