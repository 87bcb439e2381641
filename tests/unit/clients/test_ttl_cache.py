"""Unit tests for regionview.clients.ttl_cache module."""

import asyncio
import gc

import pytest

from regionview.clients.ttl_cache import CoalescingTTLCache


class TestCoalescingTTLCache:
    """Tests for CoalescingTTLCache."""

    @pytest.mark.unit
    def test_miss(self):
        cache = CoalescingTTLCache()
        assert cache.get(("a",)) == (False, None)

    @pytest.mark.unit
    def test_set_and_get(self):
        cache = CoalescingTTLCache()
        cache.set(("a",), 1)
        assert cache.get(("a",)) == (True, 1)

    @pytest.mark.unit
    def test_none_is_a_hit(self):
        cache = CoalescingTTLCache()
        cache.set(("a",), None)
        assert cache.get(("a",)) == (True, None)

    @pytest.mark.unit
    def test_lru_eviction(self):
        cache = CoalescingTTLCache(maxsize=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # a is now most recently used
        cache.set("c", 3)

        assert cache.get("b") == (False, None)
        assert cache.get("a") == (True, 1)
        assert len(cache) == 2

    @pytest.mark.unit
    def test_expiry(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("regionview.clients.ttl_cache.time.monotonic", lambda: now[0])
        cache = CoalescingTTLCache(ttl=10)
        cache.set("a", 1)

        now[0] += 5
        assert cache.get("a") == (True, 1)
        now[0] += 6
        assert cache.get("a") == (False, None)
        assert len(cache) == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_or_load_shares_pending_load(self):
        cache = CoalescingTTLCache()
        release = asyncio.Event()
        calls = []

        async def loader():
            calls.append(1)
            await release.wait()
            return "value"

        first = asyncio.create_task(cache.get_or_load("k", loader))
        second = asyncio.create_task(cache.get_or_load("k", loader))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert cache.pending("k")

        release.set()
        assert await first == "value"
        assert await second == "value"
        assert calls == [1]
        assert not cache.pending("k")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_load_not_cached(self):
        cache = CoalescingTTLCache()

        async def failing():
            raise RuntimeError("boom")

        async def working():
            return 42

        with pytest.raises(RuntimeError):
            await cache.get_or_load("k", failing)
        assert not cache.pending("k")
        assert await cache.get_or_load("k", working) == 42

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_load(self):
        cache = CoalescingTTLCache()
        release = asyncio.Event()

        async def loader():
            await release.wait()
            return "value"

        waiter = asyncio.create_task(cache.get_or_load("k", loader))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        release.set()
        assert await cache.get_or_load("k", loader) == "value"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_load_without_waiters_is_retrieved(self):
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            cache = CoalescingTTLCache()
            release = asyncio.Event()

            async def failing():
                await release.wait()
                raise RuntimeError("boom")

            waiter = asyncio.create_task(cache.get_or_load("k", failing))
            await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

            release.set()
            for _ in range(5):
                await asyncio.sleep(0)
            assert not cache.pending("k")

            del waiter
            gc.collect()
            assert reported == []
        finally:
            loop.set_exception_handler(None)
