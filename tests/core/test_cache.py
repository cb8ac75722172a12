"""Tests for the TTL cache store."""

import time

import pytest

from memo_cache.core.cache import MISSING, Cache
from memo_cache.core.schemas import CacheStats


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return Cache(clock=clock)


def test_cache_get_empty(cache):
    """Test getting from empty cache."""
    assert cache.get("key") is None


def test_cache_set_and_get(cache):
    """Test setting and getting values."""
    cache.set("a", 42, 300)
    assert cache.get("a") == 42


def test_cache_default_ttl_is_five_minutes(cache, clock):
    """Test that set without a ttl keeps the entry for 300 seconds."""
    cache.set("key", "value")
    clock.advance(299)
    assert cache.get("key") == "value"
    clock.advance(1)
    assert cache.get("key") is None


def test_cache_overwrite(cache):
    """Test overwriting cache entries."""
    cache.set("key", "value1", 60)
    cache.set("key", "value2", 60)
    assert cache.get("key") == "value2"
    assert cache.size() == 1


def test_cache_overwrite_refreshes_expiry(cache, clock):
    """Test that overwriting resets the expiry to the new ttl."""
    cache.set("key", "old", 10)
    clock.advance(8)
    cache.set("key", "new", 10)
    clock.advance(8)
    assert cache.get("key") == "new"


@pytest.mark.parametrize("ttl", [0, -5])
def test_cache_zero_or_negative_ttl_is_expired(cache, ttl):
    """Test that ttl <= 0 is accepted but never readable."""
    cache.set("key", "value", ttl)
    assert cache.get("key") is None


def test_cache_ttl_expiration_removes_entry(cache, clock):
    """Test that an expired read returns absent and drops the entry."""
    cache.set("key", "value", 1)
    assert cache.size() == 1
    clock.advance(1)
    assert cache.get("key") is None
    assert cache.size() == 0


def test_cache_ttl_expiration_real_clock():
    """Test expiry against the default monotonic clock."""
    cache = Cache()
    cache.set("key", "value", 0.2)
    assert cache.get("key") == "value"
    time.sleep(0.3)
    assert cache.get("key") is None


def test_cache_get_default_and_missing_sentinel(cache):
    """Test that a cached None is distinguishable with MISSING."""
    cache.set("none", None)
    assert cache.get("none", MISSING) is None
    assert cache.get("absent", MISSING) is MISSING
    assert cache.get("absent", "fallback") == "fallback"


def test_cache_delete(cache):
    """Test delete of present and absent keys."""
    cache.set("a", 42, 300)
    cache.delete("a")
    assert cache.get("a") is None
    cache.delete("never-set")
    assert cache.get("never-set") is None


def test_cache_clear(cache):
    """Test that clear drops every entry."""
    for i in range(5):
        cache.set(f"k{i}", i)
    cache.clear()
    assert cache.size() == 0
    assert all(cache.get(f"k{i}") is None for i in range(5))
    cache.clear()
    assert len(cache) == 0


def test_cache_contains(cache, clock):
    """Test membership honours expiry."""
    cache.set("key", "value", 5)
    assert "key" in cache
    assert cache.contains("key")
    clock.advance(5)
    assert "key" not in cache
    assert cache.size() == 0


def test_cache_delete_prefix(cache):
    """Test namespace invalidation by key prefix."""
    cache.set("jobs:1", "a")
    cache.set("jobs:2", "b")
    cache.set("invoices:1", "c")
    assert cache.delete_prefix("jobs:") == 2
    assert cache.get("jobs:1") is None
    assert cache.get("invoices:1") == "c"


def test_cache_prune_expired(cache, clock):
    """Test that pruning removes only expired entries."""
    cache.set("short", 1, 1)
    cache.set("long", 2, 60)
    clock.advance(2)
    assert cache.size() == 2
    assert cache.prune_expired() == 1
    assert cache.size() == 1
    assert cache.get("long") == 2


def test_cache_max_entries_evicts_oldest(clock):
    """Test that a full cache evicts the oldest-inserted key."""
    cache = Cache(clock=clock, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert cache.metrics.evictions == 1


def test_cache_max_entries_prefers_expired(clock):
    """Test that expired entries are pruned before evicting live ones."""
    cache = Cache(clock=clock, max_entries=2)
    cache.set("live", 1, 60)
    cache.set("stale", 2, 1)
    clock.advance(2)
    cache.set("new", 3)
    assert cache.get("live") == 1
    assert cache.get("new") == 3
    assert cache.metrics.evictions == 0


def test_cache_overwrite_does_not_evict(clock):
    """Test that overwriting an existing key in a full cache evicts nothing."""
    cache = Cache(clock=clock, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    assert cache.get("a") == 10
    assert cache.get("b") == 2


@pytest.mark.parametrize("max_entries", [0, -1])
def test_cache_rejects_non_positive_max_entries(max_entries):
    """Test constructor validation."""
    with pytest.raises(ValueError):
        Cache(max_entries=max_entries)


def test_cache_stats(cache):
    """Test stats snapshot shape and counters."""
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")

    stats = cache.stats()
    assert isinstance(stats, CacheStats)
    assert stats.size == 1
    assert stats.default_ttl_seconds == 300
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.sets == 1
    assert stats.hit_ratio == 0.5
    assert stats.in_flight == 0


def test_generic_cache_annotation():
    """Test that a cache can be parametrized by value type."""
    typed: Cache[dict] = Cache[dict](default_ttl=10)
    typed.set("party:42", {"kyc_score": 85})
    assert typed.get("party:42") == {"kyc_score": 85}
