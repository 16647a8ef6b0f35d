# perftracker/context.py – clients partagés, construits explicitement et injectés

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy.engine import Engine

from perftracker.background import BackgroundTasks
from perftracker.cache import redis_cache
from perftracker.cache.redis_cache import HotCache
from perftracker.cache.tiered import TieredSource
from perftracker.config import Settings, get_settings
from perftracker.database import init_db, make_engine, make_session_factory
from perftracker.db.performance_store import PerformanceStore
from perftracker.riot.client import RiotClient
from perftracker.services.fetcher import MatchFetcher
from perftracker.services.pipeline import PerformancePipeline

log = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    riot: RiotClient
    cache: HotCache
    store: PerformanceStore
    background: BackgroundTasks
    pipeline: PerformancePipeline
    engine: Optional[Engine] = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        riot: RiotClient,
        redis_client,
        session_factory,
        engine: Optional[Engine] = None,
        champion_names: Optional[Mapping[int, str]] = None,
    ) -> "AppContext":
        """Assemble le pipeline autour de clients fournis (réels ou fakes)."""
        background = BackgroundTasks(timeout=settings.CACHE_WRITE_TIMEOUT)
        cache = HotCache(redis_client, background)
        store = PerformanceStore(session_factory, background)
        source = TieredSource(riot, cache, settings)
        fetcher = MatchFetcher(source, limit=settings.MATCH_FETCH_CONCURRENCY, champion_names=champion_names)
        pipeline = PerformancePipeline(settings, source, cache, store, fetcher)
        return cls(
            settings=settings,
            riot=riot,
            cache=cache,
            store=store,
            background=background,
            pipeline=pipeline,
            engine=engine,
        )

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        champion_names: Optional[Mapping[int, str]] = None,
    ) -> "AppContext":
        settings = settings or get_settings()
        engine = make_engine(settings.DB_URL)
        init_db(engine)
        log.info(
            f"Configuration summary - Redis: {settings.REDIS_URL}, "
            f"concurrency: {settings.MATCH_FETCH_CONCURRENCY}"
        )
        return cls.build(
            settings,
            RiotClient(settings.RIOT_API_KEY, timeout=settings.HTTP_TIMEOUT),
            redis_cache.connect(settings.REDIS_URL),
            make_session_factory(engine),
            engine=engine,
            champion_names=champion_names,
        )

    async def close(self) -> None:
        await self.background.drain()
        await self.riot.close()
        await self.cache.close()
        if self.engine is not None:
            self.engine.dispose()
