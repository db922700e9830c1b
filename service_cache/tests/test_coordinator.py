"""
Unit tests for the cache coordinator.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from shared.errors import NotFoundError, OriginTransportError, StorageError
from service_cache.app.caching import CacheCoordinator, CacheOutcome
from service_cache.app.keys import CacheKey
from service_cache.app.origin import FetchResult


def _fetcher(result):
    """Origin fetcher stub returning ``result`` for every key."""
    fetcher = AsyncMock()
    fetcher.fetch.return_value = result
    return fetcher


class TestCacheCoordinatorGet:
    """Test cases for read-through lookups."""

    @pytest.mark.asyncio
    async def test_get_hit(self, store, key, image_a, metrics):
        """Stored entries are served without contacting the origin."""
        await store.write(key, image_a)
        fetcher = _fetcher(FetchResult.found(b"unused"))
        coordinator = CacheCoordinator(store, fetcher, metrics=metrics)

        result = await coordinator.get(key)

        assert result.outcome is CacheOutcome.HIT
        assert result.found is True
        assert result.unwrap() == image_a
        fetcher.fetch.assert_not_called()
        assert metrics.get_sample_value("cache_outcomes_total", outcome="hit") == 1.0

    @pytest.mark.asyncio
    async def test_get_miss_without_fetcher(self, store, key, metrics):
        """Without an origin a miss is simply not found."""
        coordinator = CacheCoordinator(store, metrics=metrics)

        result = await coordinator.get(key)

        assert coordinator.origin_enabled is False
        assert result.outcome is CacheOutcome.NOT_FOUND
        assert result.found is False
        with pytest.raises(NotFoundError):
            result.unwrap()
        assert metrics.get_sample_value("cache_outcomes_total", outcome="miss") == 1.0
        assert metrics.get_sample_value("cache_outcomes_total", outcome="not_found") == 1.0

    @pytest.mark.asyncio
    async def test_get_miss_backfills_from_origin(self, store, key, image_b, metrics):
        """Fetched bytes are returned and persisted for the next read."""
        fetcher = _fetcher(FetchResult.found(image_b))
        coordinator = CacheCoordinator(store, fetcher, metrics=metrics)

        result = await coordinator.get(key)

        assert result.outcome is CacheOutcome.BACKFILLED
        assert result.unwrap() == image_b
        fetcher.fetch.assert_awaited_once_with(key)
        assert await store.read(key) == image_b
        assert metrics.get_sample_value("cache_outcomes_total", outcome="miss") == 1.0
        assert metrics.get_sample_value("cache_outcomes_total", outcome="backfilled") == 1.0

        # Origin is consulted at most once per distinct miss
        second = await coordinator.get(key)
        assert second.outcome is CacheOutcome.HIT
        assert second.unwrap() == image_b
        assert fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_get_origin_not_found(self, store, key, metrics):
        """An origin 404 leaves the store untouched."""
        coordinator = CacheCoordinator(store, _fetcher(FetchResult.not_found()), metrics=metrics)

        result = await coordinator.get(key)

        assert result.outcome is CacheOutcome.NOT_FOUND
        assert await store.exists(key) is False
        assert metrics.get_sample_value("cache_outcomes_total", outcome="not_found") == 1.0

    @pytest.mark.asyncio
    async def test_get_origin_transport_error_collapses_to_not_found(self, store, key):
        """Callers cannot tell an unreachable origin from an origin 404."""
        error = OriginTransportError("https://http.cat/", details={"error": "timeout"})
        fetcher = _fetcher(FetchResult.transport_error(error))
        coordinator = CacheCoordinator(store, fetcher)

        result = await coordinator.get(key)

        assert result.outcome is CacheOutcome.NOT_FOUND
        assert await store.exists(key) is False
        fetcher.fetch.assert_awaited_once_with(key)

    @pytest.mark.asyncio
    async def test_backfill_write_failure_still_returns_bytes(self, store, key, image_b):
        """Serving the client takes priority over persisting the backfill."""
        coordinator = CacheCoordinator(store, _fetcher(FetchResult.found(image_b)))

        with patch.object(store, "write", new_callable=AsyncMock) as mock_write:
            mock_write.side_effect = StorageError(details={"error": "disk full"})
            result = await coordinator.get(key)

        assert result.outcome is CacheOutcome.BACKFILLED
        assert result.unwrap() == image_b
        mock_write.assert_awaited_once_with(key, image_b)
        assert await store.exists(key) is False

    @pytest.mark.asyncio
    async def test_read_storage_error_propagates(self, store, cache_dir, key):
        """Read failures other than absence are not treated as a miss."""
        (cache_dir / "200.jpg").mkdir()
        fetcher = _fetcher(FetchResult.found(b"unused"))
        coordinator = CacheCoordinator(store, fetcher)

        with pytest.raises(StorageError):
            await coordinator.get(key)
        fetcher.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_misses_each_fetch(self, store, key, image_b):
        """Concurrent misses for one key are not collapsed (thundering herd).

        Both requests miss before either backfills, so the origin is called
        once per request and both write the same bytes.
        """
        arrived = []
        both_missed = asyncio.Event()

        async def fetch(requested):
            arrived.append(requested)
            if len(arrived) == 2:
                both_missed.set()
            await both_missed.wait()
            return FetchResult.found(image_b)

        fetcher = AsyncMock()
        fetcher.fetch.side_effect = fetch
        coordinator = CacheCoordinator(store, fetcher)

        first, second = await asyncio.wait_for(
            asyncio.gather(coordinator.get(key), coordinator.get(key)),
            timeout=5,
        )

        assert first.outcome is CacheOutcome.BACKFILLED
        assert second.outcome is CacheOutcome.BACKFILLED
        assert fetcher.fetch.await_count == 2
        assert await store.read(key) == image_b


class TestCacheCoordinatorMutations:
    """Test cases for put and delete."""

    @pytest.mark.asyncio
    async def test_put_then_get_reads_last_write(self, store, key, image_a, image_b, metrics):
        """Read-after-write returns exactly the bytes last put."""
        coordinator = CacheCoordinator(store, metrics=metrics)

        assert (await coordinator.put(key, image_a)).outcome is CacheOutcome.STORED
        assert (await coordinator.put(key, image_b)).outcome is CacheOutcome.STORED

        result = await coordinator.get(key)
        assert result.outcome is CacheOutcome.HIT
        assert result.unwrap() == image_b
        assert metrics.get_sample_value("cache_outcomes_total", outcome="stored") == 2.0

    @pytest.mark.asyncio
    async def test_put_identical_bytes_is_idempotent(self, store, key, image_a):
        """Repeated identical puts leave the observable entry unchanged."""
        coordinator = CacheCoordinator(store)

        for _ in range(3):
            await coordinator.put(key, image_a)

        assert (await coordinator.get(key)).unwrap() == image_a

    @pytest.mark.asyncio
    async def test_put_storage_failure_raises(self, store, key, image_a, metrics):
        """Failed writes are surfaced, never dropped."""
        coordinator = CacheCoordinator(store, metrics=metrics)

        with patch.object(store, "write", new_callable=AsyncMock) as mock_write:
            mock_write.side_effect = StorageError(details={"error": "permission denied"})
            with pytest.raises(StorageError):
                await coordinator.put(key, image_a)

        assert metrics.get_sample_value("cache_outcomes_total", outcome="stored") is None

    @pytest.mark.asyncio
    async def test_delete_existing_then_repeat(self, store, key, image_a, metrics):
        """Only the first delete succeeds; repeats report not found."""
        coordinator = CacheCoordinator(store, metrics=metrics)
        await coordinator.put(key, image_a)

        first = await coordinator.delete(key)
        second = await coordinator.delete(key)

        assert first.outcome is CacheOutcome.DELETED
        assert first.found is True
        assert second.outcome is CacheOutcome.NOT_FOUND
        with pytest.raises(NotFoundError):
            second.unwrap()
        assert (await coordinator.get(key)).outcome is CacheOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_does_not_consult_origin(self, store, key):
        """Deleting a missing key never triggers a fetch."""
        fetcher = _fetcher(FetchResult.found(b"unused"))
        coordinator = CacheCoordinator(store, fetcher)

        result = await coordinator.delete(CacheKey.parse("404"))

        assert result.outcome is CacheOutcome.NOT_FOUND
        fetcher.fetch.assert_not_called()
