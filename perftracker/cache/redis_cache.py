# perftracker/cache/redis_cache.py
# ============================================================================
# Tier "hot" : Redis, valeurs JSON sous des clés déterministes
# Toute erreur Redis = miss (lecture) ou warning (écriture)
# ============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
import redis.exceptions as _redis_exc

from perftracker.background import BackgroundTasks
from perftracker.riot.client import routing_region

log = logging.getLogger(__name__)


# ─── Clés ────────────────────────────────────────────────────────────────────
def puuid_key(region: str, game_name: str, tag_line: str) -> str:
    return f"puuid:{routing_region(region)}:{game_name.lower()}:{tag_line.lower()}"


def match_ids_key(region: str, puuid: str, count: int, queue_id: int, start_time: int) -> str:
    return f"matchids:{routing_region(region)}:{puuid}:{count}:q{queue_id}:{start_time}"


def match_details_key(region: str, match_id: str) -> str:
    return f"matchdetails:{routing_region(region)}:{match_id}"


def performance_key(region: str, puuid: str, queue_id: int = 0) -> str:
    key = f"userperformance:{region.lower()}_{puuid}"
    return f"{key}:q{queue_id}" if queue_id else key


def popular_items_key() -> str:
    return "popular_items_v1"


def connect(url: str) -> aioredis.Redis:
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)


class HotCache:
    """Lecture bloquante, écriture détachée via BackgroundTasks."""

    def __init__(self, client: aioredis.Redis, background: BackgroundTasks):
        self.client = client
        self.background = background

    async def get_json(self, key: str) -> Any:
        try:
            raw = await self.client.get(key)
        except (_redis_exc.RedisError, OSError) as e:
            log.warning(f"Redis get error for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            log.warning(f"Corrupt cache entry for {key}, ignoring: {e}")
            return None

    async def set_json(self, key: str, value: Any, ttl: int) -> None:
        await self.client.set(key, json.dumps(value), ex=ttl)

    def set_background(self, key: str, value: Any, ttl: int) -> None:
        """Écriture hors chemin critique ; un échec ne fait que dégrader le hit-rate."""
        self.background.spawn(self.set_json(key, value, ttl), label=f"redis:{key}")

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (_redis_exc.RedisError, OSError) as e:
            log.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()

