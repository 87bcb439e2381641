"""Bounded LRU cache with TTL eviction and shared in-flight loads.

Used by the alignment client so that repeated or overlapping identical queries
reach the network at most once.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

from ..constants import DEFAULT_CACHE_SIZE, DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CoalescingTTLCache(Generic[T]):
    """Bounded cache with TTL expiry whose misses share one pending load per key.

    Implements LRU eviction when maxsize is exceeded. Failed loads are not cached.
    """

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE, ttl: float = DEFAULT_CACHE_TTL_SECONDS):
        self._cache: OrderedDict[Hashable, tuple[T, float]] = OrderedDict()
        self._inflight: dict[Hashable, asyncio.Task[T]] = {}
        self._maxsize = maxsize
        self._ttl = ttl

    def __len__(self) -> int:
        return len(self._cache)

    def pending(self, key: Hashable) -> bool:
        return key in self._inflight

    def get(self, key: Hashable) -> tuple[bool, T | None]:
        """Return (hit, value), dropping the entry if it has expired."""
        if key not in self._cache:
            return False, None

        value, timestamp = self._cache[key]
        if time.monotonic() - timestamp > self._ttl:
            del self._cache[key]
            return False, None

        # Move to end (most recently used)
        self._cache.move_to_end(key)
        return True, value

    def set(self, key: Hashable, value: T) -> None:
        """Set value in cache, evicting oldest if at capacity."""
        if key in self._cache:
            del self._cache[key]
        elif len(self._cache) >= self._maxsize:
            self._cache.popitem(last=False)

        self._cache[key] = (value, time.monotonic())

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, joining or starting a load on a miss."""
        hit, value = self.get(key)
        if hit:
            logger.debug("Cache hit for %s", key)
            return value  # type: ignore[return-value]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key, loader))
            task.add_done_callback(_retrieve_exception)
            self._inflight[key] = task
        else:
            logger.debug("Joining in-flight load for %s", key)
        # One caller giving up must not cancel the load for the others
        return await asyncio.shield(task)

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        try:
            value = await loader()
        finally:
            self._inflight.pop(key, None)
        self.set(key, value)
        return value


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks a failed load as retrieved even if every waiter was cancelled
    if not task.cancelled():
        task.exception()
