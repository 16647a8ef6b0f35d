"""Tests for the Redis hot tier, cache keys and background writes."""

import asyncio
import json

import pytest

from perftracker.background import BackgroundTasks
from perftracker.cache import redis_cache
from perftracker.cache.redis_cache import HotCache
from perftracker.cache.tiered import TieredSource
from perftracker.riot.client import NotFoundError


class TestKeys:
    """Deterministic, namespaced keys."""

    def test_puuid_key_is_case_insensitive(self):
        assert redis_cache.puuid_key("EUW1", "Faker", "KR1") == redis_cache.puuid_key("euw1", "faker", "kr1")
        assert redis_cache.puuid_key("euw1", "Faker", "KR1") == "puuid:europe:faker:kr1"

    def test_match_ids_key_includes_every_parameter(self):
        assert redis_cache.match_ids_key("na1", "abc", 20, 420, 0) == "matchids:americas:abc:20:q420:0"

    def test_match_details_key(self):
        assert redis_cache.match_details_key("kr", "KR_1") == "matchdetails:asia:KR_1"

    def test_performance_key_qualifies_queue(self):
        assert redis_cache.performance_key("euw1", "abc") == "userperformance:euw1_abc"
        assert redis_cache.performance_key("euw1", "abc", 450) == "userperformance:euw1_abc:q450"


@pytest.mark.asyncio
class TestHotCache:
    """Reads degrade to misses, writes never block or raise."""

    async def test_get_json_roundtrip(self, fake_redis):
        cache = HotCache(fake_redis, BackgroundTasks())
        await cache.set_json("k", {"a": 1}, ttl=60)

        assert await cache.get_json("k") == {"a": 1}
        assert fake_redis.ttls["k"] == 60

    async def test_read_error_is_a_miss(self, fake_redis):
        fake_redis.fail_reads = True
        cache = HotCache(fake_redis, BackgroundTasks())

        assert await cache.get_json("k") is None

    async def test_corrupt_entry_is_a_miss(self, fake_redis):
        fake_redis.data["k"] = "{not json"
        cache = HotCache(fake_redis, BackgroundTasks())

        assert await cache.get_json("k") is None

    async def test_background_write_does_not_block(self, fake_redis):
        fake_redis.write_delay = 0.2
        background = BackgroundTasks(timeout=1)
        cache = HotCache(fake_redis, background)

        cache.set_background("k", [1, 2], ttl=60)

        assert "k" not in fake_redis.data
        assert background.pending == 1
        await background.drain()
        assert json.loads(fake_redis.data["k"]) == [1, 2]
        assert background.pending == 0

    async def test_background_write_failure_is_swallowed(self, fake_redis, caplog):
        fake_redis.fail_writes = True
        background = BackgroundTasks(timeout=1)
        cache = HotCache(fake_redis, background)

        cache.set_background("k", "v", ttl=60)
        await background.drain()

        assert "k" not in fake_redis.data
        assert "failed" in caplog.text

    async def test_background_write_timeout(self, fake_redis, caplog):
        fake_redis.write_delay = 1
        background = BackgroundTasks(timeout=0.05)
        cache = HotCache(fake_redis, background)

        cache.set_background("k", "v", ttl=60)
        await background.drain()

        assert "k" not in fake_redis.data
        assert "timed out" in caplog.text

    async def test_ping(self, fake_redis):
        cache = HotCache(fake_redis, BackgroundTasks())
        assert await cache.ping() is True
        fake_redis.fail_reads = True
        assert await cache.ping() is False


@pytest.mark.asyncio
class TestTieredSource:
    """Cache-or-fetch for identity, match-id lists and match details."""

    async def test_puuid_is_fetched_once(self, settings, fake_riot, fake_redis):
        background = BackgroundTasks()
        source = TieredSource(fake_riot, HotCache(fake_redis, background), settings)

        assert await source.puuid("euw1", "Faker", "KR1") == "puuid-faker"
        await background.drain()
        assert await source.puuid("euw1", "FAKER", "kr1") == "puuid-faker"

        assert fake_riot.calls["puuid"] == 1
        assert fake_redis.ttls["puuid:europe:faker:kr1"] == settings.PUUID_TTL

    async def test_unknown_identity_propagates(self, settings, fake_riot, fake_redis):
        source = TieredSource(fake_riot, HotCache(fake_redis, BackgroundTasks()), settings)

        with pytest.raises(NotFoundError):
            await source.puuid("euw1", "Nobody", "000")

    async def test_match_ids_cached_with_ttl(self, settings, fake_riot, fake_redis):
        fake_riot.match_ids = ["EUW1_1", "EUW1_2"]
        background = BackgroundTasks()
        source = TieredSource(fake_riot, HotCache(fake_redis, background), settings)

        assert await source.match_ids("euw1", "p", 2) == ["EUW1_1", "EUW1_2"]
        await background.drain()
        assert await source.match_ids("euw1", "p", 2) == ["EUW1_1", "EUW1_2"]

        assert fake_riot.calls["ids"] == 1
        assert fake_redis.ttls["matchids:europe:p:2:q0:0"] == settings.MATCH_IDS_TTL

    async def test_missing_match_is_not_cached(self, settings, fake_riot, fake_redis):
        background = BackgroundTasks()
        source = TieredSource(fake_riot, HotCache(fake_redis, background), settings)

        assert await source.match_detail("euw1", "EUW1_404") is None
        await background.drain()
        assert fake_redis.data == {}

    async def test_cache_outage_falls_through_to_origin(self, settings, fake_riot, fake_redis):
        fake_redis.fail_reads = True
        fake_redis.fail_writes = True
        background = BackgroundTasks()
        source = TieredSource(fake_riot, HotCache(fake_redis, background), settings)

        assert await source.puuid("euw1", "Faker", "KR1") == "puuid-faker"
        await asyncio.wait_for(background.drain(), timeout=1)
