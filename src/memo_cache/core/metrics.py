"""
In-memory cache counters with rough p50/p95 compute latency.
Why: hit ratio and compute cost at a glance without Prometheus.
"""

import threading
from collections import deque
from typing import Deque, Dict, List

_MAX_SAMPLES = 1024


def _percentile(values: List[int], p: float) -> int:
    if not values:
        return 0
    idx = max(0, min(len(values) - 1, int(len(values) * p)))
    return sorted(values)[idx]


class CacheMetrics:
    def __init__(self, max_samples: int = _MAX_SAMPLES) -> None:
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.expirations = 0
        self.evictions = 0
        self.computes = 0
        self.compute_errors = 0
        self.coalesced = 0
        self._latencies: Deque[int] = deque(maxlen=max_samples)
        self._lock = threading.Lock()

    def _bump(self, name: str, n: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + n)

    def record_hit(self) -> None:
        self._bump("hits")

    def record_miss(self) -> None:
        self._bump("misses")

    def record_set(self) -> None:
        self._bump("sets")

    def record_delete(self, n: int = 1) -> None:
        self._bump("deletes", n)

    def record_expired(self, n: int = 1) -> None:
        self._bump("expirations", n)

    def record_eviction(self) -> None:
        self._bump("evictions")

    def record_coalesced(self) -> None:
        self._bump("coalesced")

    def record_compute(self, ms: int, failed: bool = False) -> None:
        with self._lock:
            self.computes += 1
            if failed:
                self.compute_errors += 1
            self._latencies.append(ms)

    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            lat = list(self._latencies)
            return {
                "hits": self.hits,
                "misses": self.misses,
                "sets": self.sets,
                "deletes": self.deletes,
                "expirations": self.expirations,
                "evictions": self.evictions,
                "computes": self.computes,
                "compute_errors": self.compute_errors,
                "coalesced": self.coalesced,
                "compute_p50_ms": _percentile(lat, 0.50),
                "compute_p95_ms": _percentile(lat, 0.95),
            }
