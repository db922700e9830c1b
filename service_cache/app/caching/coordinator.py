"""
Cache coordinator: read-through, write and delete semantics for cached images.
"""

import enum
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from shared.errors import NotFoundError, StorageError
from shared.logging import get_logger
from ..keys import CacheKey

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..origin.http_cat_client import OriginFetcher
    from ..storage.file_store import KeyStore


class CacheOutcome(str, enum.Enum):
    """Signals emitted while serving a request.

    MISS is only ever signalled on the way to BACKFILLED or NOT_FOUND; the
    remaining members are final outcomes.
    """

    HIT = "hit"
    MISS = "miss"
    BACKFILLED = "backfilled"
    NOT_FOUND = "not_found"
    STORED = "stored"
    DELETED = "deleted"


@dataclass(frozen=True)
class CacheResult:
    key: CacheKey
    outcome: CacheOutcome
    payload: Optional[bytes] = None

    @property
    def found(self) -> bool:
        return self.outcome is not CacheOutcome.NOT_FOUND

    def unwrap(self) -> bytes:
        """Return the payload, raising NotFoundError for a NOT_FOUND result."""
        if not self.found:
            raise NotFoundError(details={"key": self.key.value})
        return self.payload if self.payload is not None else b""


class CacheCoordinator:
    """Decides, per request, between the store, the origin, and mutations.

    The store is the single source of truth; bytes are never held across
    requests. There is no per-key locking: concurrent misses for one key each
    call the origin and each backfill, and concurrent writes resolve as the
    store resolves them.
    """

    def __init__(
        self,
        store: "KeyStore",
        fetcher: Optional["OriginFetcher"] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.metrics = metrics
        self.logger = get_logger("cache.coordinator")

    @property
    def origin_enabled(self) -> bool:
        return self.fetcher is not None

    async def get(self, key: CacheKey) -> CacheResult:
        """Serve ``key`` from the store, backfilling from the origin on a miss.

        Raises StorageError only when the store fails for a reason other than
        the entry being absent.
        """
        try:
            payload = await self.store.read(key)
        except NotFoundError:
            self._signal(key, CacheOutcome.MISS)
        else:
            self._signal(key, CacheOutcome.HIT, size=len(payload))
            return CacheResult(key, CacheOutcome.HIT, payload)

        if self.fetcher is None:
            return self._not_found(key)

        fetched = await self.fetcher.fetch(key)
        if not fetched.is_found:
            self.logger.info(
                "Origin fetch did not produce an image",
                key=key.value,
                status=fetched.status.value,
                error=fetched.error.message if fetched.error else None
            )
            return self._not_found(key)

        payload = fetched.content if fetched.content is not None else b""
        try:
            await self.store.write(key, payload)
        except StorageError as exc:
            # Serving the client wins over cache durability.
            self.logger.warning("Backfill write failed", key=key.value, details=exc.details)

        self._signal(key, CacheOutcome.BACKFILLED, size=len(payload))
        return CacheResult(key, CacheOutcome.BACKFILLED, payload)

    async def put(self, key: CacheKey, data: bytes) -> CacheResult:
        """Store ``data`` for ``key``, replacing any existing entry.

        Raises StorageError when the write fails.
        """
        await self.store.write(key, data)
        self._signal(key, CacheOutcome.STORED, size=len(data))
        return CacheResult(key, CacheOutcome.STORED)

    async def delete(self, key: CacheKey) -> CacheResult:
        """Remove the entry for ``key``; NOT_FOUND when nothing is stored."""
        try:
            await self.store.delete(key)
        except NotFoundError:
            return self._not_found(key)

        self._signal(key, CacheOutcome.DELETED)
        return CacheResult(key, CacheOutcome.DELETED)

    def _not_found(self, key: CacheKey) -> CacheResult:
        self._signal(key, CacheOutcome.NOT_FOUND)
        return CacheResult(key, CacheOutcome.NOT_FOUND)

    def _signal(self, key: CacheKey, outcome: CacheOutcome, **fields) -> None:
        self.logger.info(f"Cache {outcome.value}", key=key.value, outcome=outcome.value, **fields)
        if self.metrics is not None:
            self.metrics.increment_counter("cache_outcomes_total", outcome=outcome.value)
