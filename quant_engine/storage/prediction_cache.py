"""Bounded in-memory cache for fused decisions and ensemble predictions.

Entries are evicted in insertion order once the bound is exceeded; reads
do not refresh an entry's position. ``get_or_compute`` is atomic per key:
concurrent callers for the same fingerprint share one computation instead
of racing to insert.

Fingerprints are the first 32 hex chars of a SHA-256 over the orjson
encoding of {symbols, timeframe, indicators}.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

import orjson

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 100

V = TypeVar("V")


def fingerprint(
    symbols: Iterable[str],
    timeframe: str,
    indicator_keys: Iterable[str] = (),
    **extra: Any,
) -> str:
    """Deterministic cache key for a request."""
    payload: dict[str, Any] = {
        "symbols": sorted(symbols),
        "timeframe": timeframe,
        "indicators": sorted(indicator_keys),
    }
    if extra:
        payload["extra"] = extra
    data = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS, default=str)
    return hashlib.sha256(data).hexdigest()[:32]


class BoundedCache(Generic[V]):
    """Insertion-ordered cache holding at most ``max_size`` entries."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self._entries: OrderedDict[str, V] = OrderedDict()
        self._inflight: dict[str, asyncio.Future] = {}
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def get(self, key: str) -> V | None:
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        """Insert or overwrite, then evict the oldest entries over the bound."""
        if key in self._entries:
            self._entries[key] = value
            return
        self._entries[key] = value
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Cache evicted %s", evicted)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[V]],
        should_cache: Callable[[V], bool] | None = None,
    ) -> V:
        """Return the cached value or compute, store and return it.

        Args:
            key: Cache fingerprint.
            compute: Coroutine factory producing the value on a miss.
            should_cache: Predicate deciding whether a computed value is
                stored (e.g. to skip fallback results).
        """
        async with self._lock:
            if key in self._entries:
                self.hits += 1
                return self._entries[key]
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                self.misses += 1
                future = asyncio.get_running_loop().create_future()
                self._inflight[key] = future

        if not owner:
            return await asyncio.shield(future)

        try:
            value = await compute()
        except asyncio.CancelledError:
            self._inflight.pop(key, None)
            future.cancel()
            raise
        except Exception as e:
            self._inflight.pop(key, None)
            future.set_exception(e)
            future.exception()  # waiters re-raise it; silence "never retrieved"
            raise

        async with self._lock:
            self._inflight.pop(key, None)
            if should_cache is None or should_cache(value):
                self.put(key, value)
        future.set_result(value)
        return value

    def stats(self) -> dict[str, int]:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
        }
