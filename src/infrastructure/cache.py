"""
In-process TTL cache.

Shared by every request in the process; entries expire at an absolute
time from insertion (not sliding) and vanish on restart.

Expired entries are dropped when read, and every write sweeps the
whole store at most once per ``check_period_seconds`` so keys that are
never read again (per-origin routes) do not accumulate.

Concurrency
-----------
There is no single-flight: two requests missing the same key both run
``compute`` and both write.  Values are idempotent per key, so the last
write winning is harmless.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        default_ttl_seconds: int = 3600,
        check_period_seconds: int = 600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl_seconds
        self.check_period = check_period_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._next_sweep = clock() + check_period_seconds

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._store.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self.evict_expired()
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        self._store[key] = CacheEntry(value=value, expires_at=now + ttl)

    def evict_expired(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._store.items() if e.expires_at <= now]
        for key in expired:
            del self._store[key]
        self._next_sweep = now + self.check_period
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: Optional[int],
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Return the cached value for *key* or await *compute* and store it.

        Falsy results (``None``, empty collections) are returned but not
        stored: they are failure sentinels and must be retried next time.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        logger.debug("Cache miss: %s", key)
        value = await compute()
        if value:
            self.set(key, value, ttl_seconds)
        return value

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
