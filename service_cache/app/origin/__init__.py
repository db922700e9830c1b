"""
Origin package.

Clients for the remote image source consulted only on a cache miss.
Fetchers return a FetchResult instead of raising for the expected
"not found" and "unreachable" outcomes.
"""

from .http_cat_client import FetchResult, FetchStatus, HttpCatClient, OriginFetcher

__all__ = [
    "FetchResult",
    "FetchStatus",
    "HttpCatClient",
    "OriginFetcher",
]
