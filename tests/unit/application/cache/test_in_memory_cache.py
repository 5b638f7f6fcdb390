"""Unit tests for the in-memory TTL cache."""

import pytest

from friendbeats.application.cache import InMemoryCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache[str, dict]:
    return InMemoryCache(max_entries=3, clock=clock)


class TestInMemoryCache:
    """Test suite for InMemoryCache."""

    async def test_get_returns_value_before_expiry(
        self, cache: InMemoryCache[str, dict], clock: FakeClock
    ) -> None:
        """Test a value is served until its TTL passes."""
        await cache.set("k", {"v": 1}, ttl_seconds=60)
        clock.advance(59)

        assert await cache.get("k") == {"v": 1}

    async def test_get_returns_none_after_expiry(
        self, cache: InMemoryCache[str, dict], clock: FakeClock
    ) -> None:
        """Test that expired entries are misses and get evicted."""
        await cache.set("k", {"v": 1}, ttl_seconds=60)
        clock.advance(60)

        assert await cache.get("k") is None
        assert cache.get_stats()["total_entries"] == 0

    async def test_zero_ttl_stores_nothing(self, cache: InMemoryCache[str, dict]) -> None:
        """Test that ttl <= 0 disables caching for that value."""
        await cache.set("k", {"v": 1}, ttl_seconds=0)

        assert await cache.get("k") is None

    async def test_delete_and_clear(self, cache: InMemoryCache[str, dict]) -> None:
        """Test removal of single entries and of everything."""
        await cache.set("a", {}, ttl_seconds=10)
        await cache.set("b", {}, ttl_seconds=10)

        assert await cache.delete("a") is True
        assert await cache.delete("a") is False

        await cache.clear()
        assert await cache.get("b") is None

    async def test_full_cache_evicts_soonest_expiring(
        self, cache: InMemoryCache[str, dict]
    ) -> None:
        """Test that when full, the entry closest to expiry is dropped."""
        await cache.set("long", {}, ttl_seconds=300)
        await cache.set("short", {}, ttl_seconds=10)
        await cache.set("mid", {}, ttl_seconds=100)

        await cache.set("new", {}, ttl_seconds=50)

        assert await cache.get("short") is None
        assert await cache.get("long") == {}
        assert await cache.get("new") == {}

    async def test_full_cache_prefers_dropping_expired(
        self, cache: InMemoryCache[str, dict], clock: FakeClock
    ) -> None:
        """Test that expired entries are purged before live ones are evicted."""
        await cache.set("a", {}, ttl_seconds=5)
        await cache.set("b", {}, ttl_seconds=5)
        await cache.set("c", {}, ttl_seconds=500)
        clock.advance(10)

        await cache.set("d", {}, ttl_seconds=20)

        assert await cache.get("c") == {}
        assert await cache.get("d") == {}

    async def test_stats_count_hits_and_misses(self, cache: InMemoryCache[str, dict]) -> None:
        """Test hit/miss counters."""
        await cache.set("k", {}, ttl_seconds=10)
        await cache.get("k")
        await cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["active_entries"] == 1

    def test_max_entries_must_be_positive(self) -> None:
        """Test constructor validation."""
        with pytest.raises(ValueError):
            InMemoryCache(max_entries=0)
