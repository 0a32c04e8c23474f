"""Tests for single-flight mapping acquisition."""

import asyncio

import httpx
import pytest

from lostitem.errors import EmptyMappingError, LoadError
from lostitem.mapping_cache import MappingCache
from lostitem.sources import MappingSource, RemoteCsvSource


class CountingSource(MappingSource):
    kind = "counting"

    def __init__(self, entries, failures=0):
        self.entries = entries
        self.failures = failures
        self.calls = 0

    async def load(self):
        self.calls += 1
        await asyncio.sleep(0.01)
        if self.calls <= self.failures:
            raise LoadError("source unavailable")
        return self.entries


class CrashingSource(MappingSource):
    kind = "crashing"

    async def load(self):
        raise KeyError("boom")


def test_concurrent_calls_share_one_load(entries):
    async def scenario():
        source = CountingSource(entries)
        cache = MappingCache(source)
        first, second = await asyncio.gather(cache.ensure_loaded(), cache.ensure_loaded())
        return source, first, second

    source, first, second = asyncio.run(scenario())
    assert source.calls == 1
    assert first == second == entries


def test_concurrent_calls_trigger_one_http_fetch():
    requests = []

    async def handler(request):
        requests.append(request)
        await asyncio.sleep(0.01)
        return httpx.Response(200, text="CardCode,CardName\nA,Alpha\nB,Beta\n")

    async def scenario():
        cache = MappingCache(RemoteCsvSource("https://sheet.test/pub.csv", transport=httpx.MockTransport(handler)))
        return await asyncio.gather(*(cache.ensure_loaded() for _ in range(5)))

    results = asyncio.run(scenario())
    assert len(requests) == 1
    assert all(len(r) == 2 for r in results)


def test_loaded_mapping_is_memoized(entries):
    async def scenario():
        source = CountingSource(entries)
        cache = MappingCache(source)
        await cache.ensure_loaded()
        await cache.ensure_loaded()
        return source, cache

    source, cache = asyncio.run(scenario())
    assert source.calls == 1
    assert cache.loaded
    assert cache.mapping == entries


def test_failure_reaches_all_waiters_then_retries(entries):
    async def scenario():
        source = CountingSource(entries, failures=1)
        cache = MappingCache(source)
        results = await asyncio.gather(cache.ensure_loaded(), cache.ensure_loaded(), return_exceptions=True)
        assert source.calls == 1
        assert all(isinstance(r, LoadError) for r in results)
        assert not cache.loaded

        mapping = await cache.ensure_loaded()
        return source, mapping

    source, mapping = asyncio.run(scenario())
    assert source.calls == 2
    assert mapping == entries


def test_unexpected_error_becomes_load_error():
    cache = MappingCache(CrashingSource())
    with pytest.raises(LoadError):
        asyncio.run(cache.ensure_loaded())


def test_preload_swallows_load_error_for_next_caller(entries):
    async def scenario():
        source = CountingSource(entries, failures=1)
        cache = MappingCache(source)
        await cache.preload()
        assert not cache.loaded
        return await cache.ensure_loaded()

    assert asyncio.run(scenario()) == entries


def test_draw_before_load_fails(entries):
    cache = MappingCache(CountingSource(entries))
    with pytest.raises(EmptyMappingError):
        cache.draw_three()


def test_draw_after_load(entries):
    cache = MappingCache(CountingSource(entries))
    asyncio.run(cache.ensure_loaded())
    drawn = cache.draw_three()
    assert len(drawn) == 3
    assert all(e in entries for e in drawn)


def test_cancelled_waiter_does_not_abort_shared_load(entries):
    async def scenario():
        source = CountingSource(entries)
        cache = MappingCache(source)
        first = asyncio.ensure_future(cache.ensure_loaded())
        second = asyncio.ensure_future(cache.ensure_loaded())
        await asyncio.sleep(0)
        first.cancel()
        mapping = await second
        return source, first, mapping

    source, first, mapping = asyncio.run(scenario())
    assert first.cancelled()
    assert mapping == entries
    assert source.calls == 1


def test_load_survives_its_only_waiter_being_cancelled(entries):
    async def scenario():
        source = CountingSource(entries)
        cache = MappingCache(source)
        waiter = asyncio.ensure_future(cache.ensure_loaded())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        return source, await cache.ensure_loaded()

    source, mapping = asyncio.run(scenario())
    assert mapping == entries
    assert source.calls == 1
