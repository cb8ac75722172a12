"""In-memory TTL cache with get-or-compute and request coalescing."""

from memo_cache.core import (
    MISSING,
    Cache,
    CacheMetrics,
    CacheStats,
    cached,
    default_cache,
    hashed_key,
    make_key,
)

__all__ = [
    "MISSING",
    "Cache",
    "CacheMetrics",
    "CacheStats",
    "cached",
    "default_cache",
    "hashed_key",
    "make_key",
]
