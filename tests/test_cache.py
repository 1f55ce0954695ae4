"""Tests for the expiring LRU counter cache."""

import threading

import pytest

from linksite.app.core.cache import ExpiringLRUCache, _CacheEntry


class TestCacheEntry:
    """Tests for the internal _CacheEntry class."""

    def test_fresh_entry_not_expired(self):
        entry = _CacheEntry(value=1, stored_at=100.0)
        assert not entry.is_expired(now=150.0, ttl=60)

    def test_entry_at_exact_ttl_not_expired(self):
        entry = _CacheEntry(value=1, stored_at=100.0)
        assert not entry.is_expired(now=160.0, ttl=60)

    def test_entry_past_ttl_expired(self):
        entry = _CacheEntry(value=1, stored_at=100.0)
        assert entry.is_expired(now=160.5, ttl=60)


class TestExpiringLRUCache:
    """Tests for get/set semantics."""

    @pytest.fixture
    def cache(self, clock):
        return ExpiringLRUCache(max_entries=3, ttl=60, clock=clock)

    def test_get_nonexistent_key(self, cache):
        """Absence is a normal outcome, not an error."""
        assert cache.get("missing") is None

    def test_set_and_get(self, cache):
        cache.set("1.2.3.4", 3)
        assert cache.get("1.2.3.4") == 3

    def test_set_overwrites(self, cache):
        cache.set("k", 1)
        cache.set("k", 7)
        assert cache.get("k") == 7
        assert len(cache) == 1

    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("k", 2)
        clock.advance(61)
        assert cache.get("k") is None
        # Expired entry is removed from internal storage
        assert "k" not in cache._data

    def test_set_resets_age(self, cache, clock):
        cache.set("k", 1)
        clock.advance(50)
        cache.set("k", 2)
        clock.advance(50)
        assert cache.get("k") == 2

    def test_get_does_not_reset_age(self, cache, clock):
        cache.set("k", 1)
        clock.advance(50)
        assert cache.get("k") == 1
        clock.advance(11)
        assert cache.get("k") is None

    def test_lru_eviction_when_full(self, cache):
        cache.set("a", 1)
        cache.set("b", 1)
        cache.set("c", 1)
        cache.set("d", 1)
        assert cache.get("a") is None
        assert len(cache) == 3

    def test_get_refreshes_recency(self, cache):
        cache.set("a", 1)
        cache.set("b", 1)
        cache.set("c", 1)
        cache.get("a")
        cache.set("d", 1)
        assert cache.get("a") == 1
        assert cache.get("b") is None

    def test_contains_ignores_expired(self, cache, clock):
        cache.set("k", 1)
        assert "k" in cache
        clock.advance(61)
        assert "k" not in cache

    def test_delete_and_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 1)
        cache.delete("a")
        cache.delete("never-set")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0

    def test_cleanup_expired(self, cache, clock):
        cache.set("old", 1)
        clock.advance(40)
        cache.set("new", 1)
        clock.advance(30)
        assert cache.cleanup_expired() == 1
        assert cache.get("new") == 1

    @pytest.mark.parametrize(("max_entries", "ttl"), [(0, 60), (10, 0), (10, -1)])
    def test_rejects_invalid_configuration(self, max_entries, ttl):
        with pytest.raises(ValueError):
            ExpiringLRUCache(max_entries=max_entries, ttl=ttl)


class TestIncrementBelow:
    """Tests for the atomic check-and-increment."""

    def test_absent_key_starts_at_one(self, clock):
        cache = ExpiringLRUCache(max_entries=10, ttl=60, clock=clock)
        assert cache.increment_below("k", limit=3) == 1
        assert cache.get("k") == 1

    def test_stops_at_limit_without_writing(self, clock):
        cache = ExpiringLRUCache(max_entries=10, ttl=60, clock=clock)
        assert [cache.increment_below("k", limit=2) for _ in range(3)] == [1, 2, None]

        # A refused attempt must not refresh the entry's age
        clock.advance(61)
        assert cache.get("k") is None

    def test_restarts_after_expiry(self, clock):
        cache = ExpiringLRUCache(max_entries=10, ttl=60, clock=clock)
        cache.increment_below("k", limit=1)
        assert cache.increment_below("k", limit=1) is None
        clock.advance(61)
        assert cache.increment_below("k", limit=1) == 1

    def test_concurrent_increments_never_exceed_limit(self):
        cache = ExpiringLRUCache(max_entries=10, ttl=60)
        results: list[int | None] = []
        results_lock = threading.Lock()

        def worker() -> None:
            for _ in range(50):
                value = cache.increment_below("shared", limit=100)
                with results_lock:
                    results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        allowed = [r for r in results if r is not None]
        assert len(allowed) == 100
        assert sorted(allowed) == list(range(1, 101))
        assert cache.get("shared") == 100
