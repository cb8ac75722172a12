"""Cache store, key builders, decorator and the logging/metrics around them."""

from .cache import MISSING, Cache, default_cache
from .cache_key import hashed_key, make_key
from .decorators import cached
from .metrics import CacheMetrics
from .schemas import CacheStats

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
