"""Unit tests for MemoryCacheProvider."""

from __future__ import annotations

import pytest

from mediaquery.providers.cache.memory_cache import MemoryCacheProvider


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestMemoryCacheProvider:
    @pytest.fixture()
    def clock(self) -> _Clock:
        return _Clock()

    @pytest.fixture()
    def cache(self, clock: _Clock) -> MemoryCacheProvider:
        return MemoryCacheProvider(max_size=100, ttl=3600, timer=clock)

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, cache: MemoryCacheProvider) -> None:
        assert await cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: MemoryCacheProvider) -> None:
        await cache.set("key1", "value1")
        assert await cache.get("key1") == "value1"

    @pytest.mark.asyncio
    async def test_set_overwrites_existing(self, cache: MemoryCacheProvider) -> None:
        await cache.set("key1", "old")
        await cache.set("key1", "new")
        assert await cache.get("key1") == "new"

    @pytest.mark.asyncio
    async def test_per_entry_ttl_expires(self, cache: MemoryCacheProvider, clock: _Clock) -> None:
        await cache.set("short", "a", ttl=10)
        await cache.set("long", "b", ttl=100)

        clock.now = 5
        assert await cache.get("short") == "a"

        clock.now = 11
        assert await cache.get("short") is None
        assert await cache.get("long") == "b"

    @pytest.mark.asyncio
    async def test_default_ttl_applies(self, clock: _Clock) -> None:
        cache = MemoryCacheProvider(ttl=60, timer=clock)
        await cache.set("k", "v")
        clock.now = 61
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_max_size_evicts(self, clock: _Clock) -> None:
        cache = MemoryCacheProvider(max_size=2, timer=clock)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)
        present = [k for k in ("a", "b", "c") if await cache.get(k) is not None]
        assert len(present) == 2
        assert "c" in present

    def test_provider_name(self, cache: MemoryCacheProvider) -> None:
        assert cache.get_provider_name() == "memory"
