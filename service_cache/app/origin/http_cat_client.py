"""
Origin client for http.cat images.
"""

import enum
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from shared.config import DEFAULT_ORIGIN_URL
from shared.errors import OriginTransportError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..keys import CacheKey


class FetchStatus(str, enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a single origin lookup; consumed immediately, never stored."""

    status: FetchStatus
    content: Optional[bytes] = None
    error: Optional[OriginTransportError] = None

    @classmethod
    def found(cls, content: bytes) -> "FetchResult":
        return cls(FetchStatus.FOUND, content=content)

    @classmethod
    def not_found(cls) -> "FetchResult":
        return cls(FetchStatus.NOT_FOUND)

    @classmethod
    def transport_error(cls, error: OriginTransportError) -> "FetchResult":
        return cls(FetchStatus.TRANSPORT_ERROR, error=error)

    @property
    def is_found(self) -> bool:
        return self.status is FetchStatus.FOUND


class OriginFetcher(Protocol):
    """Remote lookup used only when the local store misses."""

    async def fetch(self, key: CacheKey) -> FetchResult:
        ...


class HttpCatClient:
    """Client fetching ``<base_url><code>`` images from http.cat.

    A single ``httpx.AsyncClient`` is shared across requests; call
    :meth:`aclose` on shutdown. Failures are reported in the returned
    :class:`FetchResult` and are not retried.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_ORIGIN_URL,
        *,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.logger = get_logger("cache.origin_client")
        self.metrics = metrics
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    def url_for(self, key: CacheKey) -> str:
        return f"{self.base_url}{key.value}"

    async def fetch(self, key: CacheKey) -> FetchResult:
        """Fetch the image for ``key`` from the origin."""
        url = self.url_for(key)
        with self._timer():
            try:
                response = await self._client.get(url)
            except httpx.HTTPError as exc:
                self.logger.error("Origin request failed", url=url, key=key.value, error=str(exc))
                result = FetchResult.transport_error(
                    OriginTransportError(self.base_url, details={"key": key.value, "error": str(exc)})
                )
            else:
                result = self._interpret(key, url, response)

        if self.metrics is not None:
            self.metrics.increment_counter("origin_fetches_total", result=result.status.value)
        return result

    def _interpret(self, key: CacheKey, url: str, response: httpx.Response) -> FetchResult:
        if response.status_code == 200:
            self.logger.debug("Origin image retrieved", url=url, key=key.value, size=len(response.content))
            return FetchResult.found(response.content)

        if response.status_code == 404:
            self.logger.info("Origin image not found", url=url, key=key.value)
            return FetchResult.not_found()

        self.logger.error(
            "Origin request returned unexpected status",
            url=url,
            key=key.value,
            status_code=response.status_code
        )
        return FetchResult.transport_error(
            OriginTransportError(
                self.base_url,
                message=f"Unexpected status {response.status_code}",
                details={"key": key.value, "status_code": response.status_code}
            )
        )

    def _timer(self):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_operation("origin_fetch_duration_seconds")

    async def aclose(self) -> None:
        await self._client.aclose()
