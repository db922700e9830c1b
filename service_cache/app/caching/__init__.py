"""
Image caching package.

The coordinator composes a key store with an optional origin fetcher and
defines read-through, write and delete semantics for the service. The
warmer drives the coordinator to pre-populate the store ahead of traffic.
"""

from .coordinator import CacheCoordinator, CacheOutcome, CacheResult
from .warmer import warm_cache

__all__ = [
    "CacheCoordinator",
    "CacheOutcome",
    "CacheResult",
    "warm_cache",
]
