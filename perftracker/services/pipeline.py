# perftracker/services/pipeline.py
# ============================================================================
# Orchestrateur : identité → cache agrégat (Redis) → base → API (fan-out)
# ============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import List, Optional, Tuple

from perftracker.cache.redis_cache import HotCache, performance_key, popular_items_key
from perftracker.cache.tiered import TieredSource
from perftracker.config import Settings
from perftracker.db.performance_store import PerformanceStore
from perftracker.errors import InvalidRequestError
from perftracker.models.performance import UserPerformance
from perftracker.models.summary import Pagination, PlayerDashboard, RecentGamesSummary
from perftracker.services.fetcher import MatchFetcher
from perftracker.services.stats import calculate_incremental_stats, calculate_recent_games_summary

log = logging.getLogger(__name__)


class PerformancePipeline:
    """
    Répond à « les N derniers matchs de ce joueur » (filtre de queue optionnel).

    Les paramètres sont supposés déjà validés/sanitisés par la couche HTTP ;
    seules les bornes numériques sont revérifiées ici.
    """

    def __init__(
        self,
        settings: Settings,
        source: TieredSource,
        cache: HotCache,
        store: PerformanceStore,
        fetcher: MatchFetcher,
    ):
        self.settings = settings
        self.source = source
        self.cache = cache
        self.store = store
        self.fetcher = fetcher

    def _check(self, game_name: str, tag_line: str, count: int) -> None:
        if not game_name or not tag_line:
            raise InvalidRequestError("gameName and tagLine are required")
        if count < 1 or count > self.settings.MAX_MATCH_COUNT:
            raise InvalidRequestError(f"count must be between 1 and {self.settings.MAX_MATCH_COUNT}")

    async def _hot_performance(self, key: str) -> Optional[UserPerformance]:
        data = await self.cache.get_json(key)
        if not isinstance(data, dict):
            return None
        try:
            return UserPerformance.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"Error decoding user performance from Redis ({key}), will fetch: {e}")
            return None

    def _is_fresh(self, stored: UserPerformance, count: int) -> bool:
        # utilisable sans refetch : assez de matchs ET âge < TTL/2
        return (
            len(stored.matches) >= count
            and stored.age() < self.settings.PERFORMANCE_TTL / 2
        )

    @staticmethod
    def _prior(prior: Optional[UserPerformance], count: int) -> Optional[UserPerformance]:
        if prior is None:
            return None
        return replace(prior.trimmed(count), updated_at=int(time.time()))

    async def _resolve(
        self,
        region: str,
        game_name: str,
        tag_line: str,
        count: int,
        queue_id: int,
    ) -> Tuple[UserPerformance, int]:
        """
        Machine à états de get_user_performance.

        Returns:
            (performance, available) où `available` est le nombre de matchs
            connus de la source (IDs rendus par l'API, ou taille de l'agrégat
            servi depuis un cache), indépendamment des matchs abandonnés.
        """
        region = region.lower()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.request_deadline(count)

        # 1. identité
        puuid = await self.source.puuid(region, game_name, tag_line)
        riot_id = f"{game_name}#{tag_line}"

        # 2. agrégat en cache Redis
        hot_key = performance_key(region, puuid, queue_id)
        hot = await self._hot_performance(hot_key)
        if hot is not None:
            if len(hot.matches) >= count:
                log.info(f"User performance for {puuid} loaded from Redis cache.")
                return hot.trimmed(count), len(hot.matches)
            log.info(f"Redis cache hit, but not enough matches ({len(hot.matches)} < {count}), will fetch fresh data.")

        # 3. document durable (historique non filtré uniquement)
        stored: Optional[UserPerformance] = None
        if not queue_id:
            stored = await self.store.load(puuid, region)
            if stored is not None and self._is_fresh(stored, count):
                log.info(f"User performance for {puuid} loaded from database.")
                self.cache.set_background(hot_key, stored.to_dict(), self.settings.PERFORMANCE_TTL)
                return stored.trimmed(count), len(stored.matches)

        # 4. API : liste d'IDs puis fan-out
        log.info(f"Fetching fresh match data for {riot_id} ({puuid})")
        match_ids = await self.source.match_ids(region, puuid, count, queue_id)

        if not match_ids:
            # 5. "aucune partie récente" n'est pas une erreur
            log.info(f"No match IDs found for {puuid} in region {region} with queue {queue_id}")
            prior = self._prior(stored or hot, count)
            if prior is not None:
                return prior, 0
            return UserPerformance.empty(puuid, region, riot_id), 0

        remaining = max(0.0, deadline - loop.time())
        batch = await self.fetcher.fetch_batch(region, match_ids, puuid, deadline=remaining)

        performance = UserPerformance(
            puuid=puuid,
            region=region,
            riot_id=riot_id,
            matches=batch.matches,
            updated_at=int(time.time()),
        )

        if batch.timed_out:
            # lot incomplet : jamais persisté, il écraserait un historique plus complet
            prior = self._prior(stored or hot, count)
            if not batch.matches and prior is not None:
                log.warning(f"Deadline reached with no match for {puuid}, serving previous snapshot.")
                return prior, len(match_ids)
            log.warning(f"Deadline reached for {puuid}, returning {len(batch.matches)}/{batch.requested} matches unsaved.")
            return performance, len(match_ids)

        # persistance hors chemin critique
        self.cache.set_background(hot_key, performance.to_dict(), self.settings.PERFORMANCE_TTL)
        if not queue_id:
            self.store.upsert_background(performance)

        return performance, len(match_ids)

    async def get_user_performance(
        self,
        region: str,
        game_name: str,
        tag_line: str,
        count: Optional[int] = None,
        queue_id: int = 0,
    ) -> UserPerformance:
        """
        Historique des `count` derniers matchs (triés du plus récent au plus ancien).

        Raises:
            InvalidRequestError: paramètres hors bornes
            NotFoundError: Riot ID inconnu
            RiotAPIError: échec de l'API sur l'identité ou la liste d'IDs
        """
        count = self.settings.DEFAULT_MATCH_COUNT if count is None else count
        self._check(game_name, tag_line, count)
        performance, _ = await self._resolve(region, game_name, tag_line, count, queue_id)
        return performance

    async def get_recent_games_summary(
        self,
        region: str,
        game_name: str,
        tag_line: str,
        count: Optional[int] = None,
        queue_id: int = 0,
    ) -> RecentGamesSummary:
        """Résumé complet, toujours recalculé à partir des MatchStats."""
        performance = await self.get_user_performance(region, game_name, tag_line, count, queue_id)
        return calculate_recent_games_summary(
            performance.matches, performance.puuid, performance.region, performance.riot_id,
        )

    async def get_dashboard(
        self,
        region: str,
        game_name: str,
        tag_line: str,
        limit: Optional[int] = None,
        queue_id: int = 0,
        offset: int = 0,
    ) -> PlayerDashboard:
        """
        Page `[offset, offset + limit)` de l'historique.

        Seule la première page (offset == 0) porte le résumé complet ; les
        suivantes n'ont que les stats incrémentales de la page. `hasMore`
        suit le nombre d'IDs rendus par l'API, pas les matchs survivants.
        """
        limit = self.settings.DEFAULT_MATCH_COUNT if limit is None else limit
        if offset < 0:
            raise InvalidRequestError("offset must be >= 0")
        self._check(game_name, tag_line, limit)

        cap = self.settings.MAX_MATCH_COUNT
        if offset >= cap:
            return PlayerDashboard(
                matches=[],
                pagination=Pagination(offset=offset, limit=limit, has_more=False),
                incremental_stats=calculate_incremental_stats([]),
            )

        wanted = min(offset + limit, cap)
        performance, available = await self._resolve(region, game_name, tag_line, wanted, queue_id)
        page = performance.matches[offset:offset + limit]
        has_more = available >= offset + limit and offset + limit < cap

        summary = None
        if offset == 0:
            summary = calculate_recent_games_summary(
                page, performance.puuid, performance.region, performance.riot_id,
            )

        return PlayerDashboard(
            matches=page,
            pagination=Pagination(offset=offset, limit=limit, has_more=has_more),
            incremental_stats=calculate_incremental_stats(page),
            summary=summary,
        )

    async def get_popular_items(self, limit: Optional[int] = None) -> List[int]:
        """
        Les `limit` objets les plus fréquents sur tout l'historique stocké.

        Redis d'abord (clé globale, TTL 24 h), sinon agrégation en base.
        Une liste vide n'est pas mise en cache.
        """
        limit = self.settings.POPULAR_ITEMS_COUNT if limit is None else limit
        key = popular_items_key()
        cached = await self.cache.get_json(key)
        if isinstance(cached, list):
            log.info("Cache hit for popular items.")
            return cached[:limit]

        log.info("Cache miss for popular items. Fetching from DB.")
        item_ids = await self.store.popular_item_ids(limit)
        if item_ids:
            self.cache.set_background(key, item_ids, self.settings.POPULAR_ITEMS_TTL)
        return item_ids
