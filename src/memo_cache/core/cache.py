"""
In-memory TTL cache with get-or-compute and per-key request coalescing.
Why: memoize query results for a bounded window without every concurrent
miss on the same key hitting the backend.
"""

import asyncio
import inspect
import threading
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Hashable,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from ..config.settings import settings
from .logging import get_logger
from .metrics import CacheMetrics
from .schemas import CacheStats

_LOG = get_logger(__name__)

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 300.0

_Entry = Tuple[Any, float]  # (value, expires_at)


class _Missing:
    """Sentinel for "no live entry"; distinct from a cached None."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class _InFlight:
    """A compute running in some thread; other threads wait on ``done``."""

    __slots__ = ("owner", "done", "value", "error")

    def __init__(self) -> None:
        self.owner = threading.get_ident()
        self.done = threading.Event()
        self.value: Any = None
        self.error: Optional[BaseException] = None


class Cache(Generic[V]):
    """
    Key/value store with per-entry expiry.

    Entries are live while ``clock() < expires_at``. Expired entries are
    dropped lazily on read, by ``prune_expired()``, or to make room when
    ``max_entries`` is set. ``get_or_set`` / ``aget_or_set`` run at most one
    compute per key at a time; concurrent callers share its outcome.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        *,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional[CacheMetrics] = None,
    ) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.default_ttl = float(default_ttl)
        self.max_entries = max_entries
        self.metrics = metrics if metrics is not None else CacheMetrics()
        self._clock = clock
        self._data: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._in_flight: Dict[str, _InFlight] = {}
        # (loop, key) -> (future, leader task)
        self._async_in_flight: Dict[
            Tuple[Hashable, str], Tuple["asyncio.Future[Any]", Optional["asyncio.Task[Any]"]]
        ] = {}

    # -- basic operations ---------------------------------------------------

    def set(self, key: str, value: V, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._store(key, value, ttl)

    def get(self, key: str, default: Any = None) -> Union[V, Any]:
        with self._lock:
            value = self._lookup(key)
        if value is MISSING:
            self.metrics.record_miss()
            return default
        self.metrics.record_hit()
        return value

    def delete(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self.metrics.record_delete()

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._data if k.startswith(prefix)]
            for k in doomed:
                del self._data[k]
        if doomed:
            self.metrics.record_delete(len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def contains(self, key: str) -> bool:
        with self._lock:
            return self._lookup(key) is not MISSING

    __contains__ = contains

    def size(self) -> int:
        with self._lock:
            return len(self._data)

    __len__ = size

    def prune_expired(self) -> int:
        with self._lock:
            removed = self._prune_locked()
        if removed:
            _LOG.debug(f"pruned expired entries count={removed}")
        return removed

    def stats(self) -> CacheStats:
        with self._lock:
            size = len(self._data)
            in_flight = len(self._in_flight) + len(self._async_in_flight)
        return CacheStats(
            size=size,
            default_ttl_seconds=self.default_ttl,
            max_entries=self.max_entries,
            in_flight=in_flight,
            hit_ratio=self.metrics.hit_ratio(),
            **self.metrics.snapshot(),
        )

    # -- get-or-compute -----------------------------------------------------

    def get_or_set(
        self,
        key: str,
        compute: Callable[[], V],
        ttl_seconds: Optional[float] = None,
    ) -> V:
        """
        Return the live value for ``key``, or run ``compute()`` and cache it.

        Threads missing the same key while a compute runs wait for it and get
        its value or its exception. Nothing is cached when ``compute`` raises.
        """
        with self._lock:
            value = self._lookup(key)
            if value is not MISSING:
                self.metrics.record_hit()
                return value
            self.metrics.record_miss()
            flight = self._in_flight.get(key)
            leader = flight is None
            if flight is None:
                flight = self._in_flight[key] = _InFlight()
            elif flight.owner == threading.get_ident():
                raise RuntimeError(f"Recursive get_or_set for key {key!r}")

        if not leader:
            self.metrics.record_coalesced()
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.value

        start = time.perf_counter()
        try:
            value = compute()
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                raise TypeError(
                    f"compute for key {key!r} returned an awaitable; use aget_or_set"
                )
        except BaseException as e:
            flight.error = e
            self._compute_failed(key, start)
            raise
        else:
            self.metrics.record_compute(_elapsed_ms(start))
            try:
                self.set(key, value, ttl_seconds)
            except BaseException as e:
                flight.error = e
                raise
            flight.value = value
            return value
        finally:
            with self._lock:
                self._in_flight.pop(key, None)
            flight.done.set()

    async def aget_or_set(
        self,
        key: str,
        compute: Callable[[], Union[Awaitable[V], V]],
        ttl_seconds: Optional[float] = None,
    ) -> V:
        """
        Async twin of ``get_or_set``; ``compute`` may return an awaitable.

        Coalescing is per event loop. If the leading task is cancelled its
        waiters see ``CancelledError`` and nothing is cached.
        """
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()
        slot = (loop, key)
        with self._lock:
            value = self._lookup(key)
            if value is not MISSING:
                self.metrics.record_hit()
                return value
            self.metrics.record_miss()
            pending = self._async_in_flight.get(slot)
            leader = pending is None
            if pending is None:
                fut = loop.create_future()
                self._async_in_flight[slot] = (fut, task)
            else:
                fut, owner = pending
                if owner is not None and owner is task:
                    raise RuntimeError(f"Recursive aget_or_set for key {key!r}")

        if not leader:
            self.metrics.record_coalesced()
            return await asyncio.shield(fut)

        start = time.perf_counter()
        try:
            result = compute()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self._compute_failed(key, start)
            fut.set_exception(e)
            # waiters may not exist; mark retrieved so the loop stays quiet
            fut.exception()
            raise
        else:
            self.metrics.record_compute(_elapsed_ms(start))
            try:
                self.set(key, result, ttl_seconds)
            except Exception as e:
                fut.set_exception(e)
                fut.exception()
                raise
            fut.set_result(result)
            return result
        finally:
            if not fut.done():
                fut.cancel()
            with self._lock:
                self._async_in_flight.pop(slot, None)

    # -- internals (caller holds self._lock) --------------------------------

    def _lookup(self, key: str) -> Any:
        entry = self._data.get(key)
        if entry is None:
            return MISSING
        value, expires_at = entry
        # expiry instant counts as expired so ttl <= 0 never reads back
        if self._clock() >= expires_at:
            del self._data[key]
            self.metrics.record_expired()
            return MISSING
        return value

    def _store(self, key: str, value: Any, ttl: float) -> None:
        # re-insert so dict order tracks insertion time for eviction
        self._data.pop(key, None)
        if self.max_entries is not None and len(self._data) >= self.max_entries:
            self._prune_locked()
            while len(self._data) >= self.max_entries:
                oldest = next(iter(self._data))
                del self._data[oldest]
                self.metrics.record_eviction()
                _LOG.debug(f"evicted key={oldest} max_entries={self.max_entries}")
        self._data[key] = (value, self._clock() + ttl)
        self.metrics.record_set()

    def _prune_locked(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._data.items() if now >= expires_at]
        for k in expired:
            del self._data[k]
        if expired:
            self.metrics.record_expired(len(expired))
        return len(expired)

    def _compute_failed(self, key: str, start: float) -> None:
        self.metrics.record_compute(_elapsed_ms(start), failed=True)
        _LOG.debug(f"compute failed key={key}", exc_info=True)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


default_cache: "Cache[Any]" = Cache(
    default_ttl=settings.cache.default_ttl_seconds,
    max_entries=settings.cache.max_entries,
)
