# perftracker/cache/tiered.py
# ============================================================================
# Cache-or-fetch pour les ressources Riot : identité, listes d'IDs, détails
# Redis d'abord, puis l'API ; l'écriture Redis part en tâche de fond
# ============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from perftracker.cache.redis_cache import (
    HotCache,
    match_details_key,
    match_ids_key,
    puuid_key,
)
from perftracker.config import Settings
from perftracker.riot.client import RiotClient

log = logging.getLogger(__name__)


class TieredSource:
    """Front des trois ressources Riot, chacune avec son TTL."""

    def __init__(self, riot: RiotClient, cache: HotCache, settings: Settings):
        self.riot = riot
        self.cache = cache
        self.settings = settings

    async def puuid(self, region: str, game_name: str, tag_line: str) -> str:
        """
        Résout un Riot ID en PUUID (clé insensible à la casse).

        Raises:
            NotFoundError: compte inconnu
            RiotAPIError: échec transitoire de l'API
        """
        key = puuid_key(region, game_name, tag_line)
        cached = await self.cache.get_json(key)
        if isinstance(cached, str) and cached:
            log.debug(f"PUUID cache hit for {game_name}#{tag_line}")
            return cached

        puuid = await self.riot.resolve_puuid(region, game_name, tag_line)
        self.cache.set_background(key, puuid, self.settings.PUUID_TTL)
        return puuid

    async def match_ids(
        self,
        region: str,
        puuid: str,
        count: int,
        queue_id: int = 0,
        start_time: int = 0,
    ) -> List[str]:
        key = match_ids_key(region, puuid, count, queue_id, start_time)
        cached = await self.cache.get_json(key)
        if isinstance(cached, list):
            log.debug(f"Match IDs cache hit for {puuid} ({len(cached)} ids)")
            return cached

        ids = await self.riot.get_match_ids(region, puuid, count, queue_id, start_time)
        self.cache.set_background(key, ids, self.settings.MATCH_IDS_TTL)
        return ids

    async def match_detail(self, region: str, match_id: str) -> Optional[Dict[str, Any]]:
        """Détail brut match-v5 ; None si l'API renvoie 404 (non mis en cache)."""
        key = match_details_key(region, match_id)
        cached = await self.cache.get_json(key)
        if isinstance(cached, dict):
            return cached

        match = await self.riot.get_match_by_id(region, match_id)
        if match is None:
            log.info(f"Match {match_id} not found in region {region}, skipping.")
            return None
        # un match joué est immuable → TTL long
        self.cache.set_background(key, match, self.settings.MATCH_DETAILS_TTL)
        return match
