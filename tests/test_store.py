"""Tests for the SQLAlchemy-backed durable tier."""

import pytest

from conftest import make_stats
from perftracker.background import BackgroundTasks
from perftracker.database import make_session_factory
from perftracker.db.performance_store import PerformanceStore
from perftracker.models.performance import UserPerformance


@pytest.fixture
def store(engine):
    return PerformanceStore(make_session_factory(engine), BackgroundTasks(timeout=5))


def _performance(n, updated_at=1_700_000_000, riot_id="Faker#KR1"):
    matches = [make_stats(f"EUW1_{i}", creation=1_000 - i) for i in range(n)]
    return UserPerformance(puuid="p1", region="euw1", riot_id=riot_id, matches=matches, updated_at=updated_at)


@pytest.mark.asyncio
class TestPerformanceStore:

    async def test_missing_document(self, store):
        assert await store.load("nobody", "euw1") is None

    async def test_upsert_then_load(self, store):
        await store.upsert(_performance(3))

        loaded = await store.load("p1", "euw1")

        assert loaded is not None
        assert loaded.riot_id == "Faker#KR1"
        assert loaded.updated_at == 1_700_000_000
        assert [m.match_id for m in loaded.matches] == ["EUW1_0", "EUW1_1", "EUW1_2"]
        assert loaded.matches[0].to_dict() == _performance(3).matches[0].to_dict()

    async def test_last_write_wins(self, store):
        await store.upsert(_performance(5, updated_at=100))
        await store.upsert(_performance(2, updated_at=200, riot_id="Faker#KR2"))

        loaded = await store.load("p1", "euw1")

        assert len(loaded.matches) == 2
        assert loaded.updated_at == 200
        assert loaded.riot_id == "Faker#KR2"

    async def test_documents_are_keyed_by_region(self, store):
        await store.upsert(_performance(1))

        assert await store.load("p1", "na1") is None

    async def test_background_upsert(self, store):
        store.upsert_background(_performance(2))
        await store.background.drain()

        assert len((await store.load("p1", "euw1")).matches) == 2

    async def test_ping(self, store):
        assert await store.ping() is True

    async def test_popular_item_ids(self, store):
        first = _performance(0)
        first.matches = [
            make_stats("M1", items=[3157, 3020, 0, 0, 0, 0, 3340]),
            make_stats("M2", items=[3157, 3089, 0, 0, 0, 0, 3340]),
        ]
        second = UserPerformance(
            puuid="p2", region="na1", riot_id="Other#NA1", updated_at=1,
            matches=[make_stats("M3", items=[3157, 0, 0, 0, 0, 0, 3364])],
        )
        await store.upsert(first)
        await store.upsert(second)

        assert await store.popular_item_ids(2) == [3157, 3340]
        assert 0 not in await store.popular_item_ids(50)

    async def test_popular_item_ids_empty_store(self, store):
        assert await store.popular_item_ids(50) == []
