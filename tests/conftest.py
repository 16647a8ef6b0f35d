"""Shared fakes: in-memory Redis, scripted Riot origin, temporary SQLite store."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest
import redis.exceptions as redis_exc

from perftracker.config import Settings
from perftracker.context import AppContext
from perftracker.database import init_db, make_engine, make_session_factory
from perftracker.models.performance import MatchStats, kda_ratio
from perftracker.riot.client import NotFoundError


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the hot cache."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.write_delay = 0.0

    async def get(self, key):
        if self.fail_reads:
            raise redis_exc.ConnectionError("redis down")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise redis_exc.ConnectionError("redis down")
        self.data[key] = value
        self.ttls[key] = ex

    async def ping(self):
        if self.fail_reads:
            raise redis_exc.ConnectionError("redis down")
        return True

    async def aclose(self):
        pass


class FakeRiot:
    """Scripted origin: accounts, match-id lists and match payloads."""

    def __init__(self):
        self.accounts: Dict[str, str] = {}
        self.match_ids: List[str] = []
        self.matches: Dict[str, Dict[str, Any]] = {}
        self.failing: Dict[str, Exception] = {}
        self.delay = 0.0
        self.calls: Dict[str, int] = {"puuid": 0, "ids": 0, "match": 0}
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve_puuid(self, region, game_name, tag_line):
        self.calls["puuid"] += 1
        puuid = self.accounts.get(f"{game_name}#{tag_line}".lower())
        if puuid is None:
            raise NotFoundError(f"{game_name}#{tag_line}")
        return puuid

    async def get_match_ids(self, region, puuid, count=25, queue_id=0, start_time=0):
        self.calls["ids"] += 1
        if "ids" in self.failing:
            raise self.failing["ids"]
        ids = self.match_ids
        if queue_id:
            ids = [m for m in ids if self.matches.get(m, {}).get("info", {}).get("queueId") == queue_id]
        return ids[:count]

    async def get_match_by_id(self, region, match_id) -> Optional[Dict[str, Any]]:
        self.calls["match"] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if match_id in self.failing:
                raise self.failing[match_id]
            return self.matches.get(match_id)
        finally:
            self.in_flight -= 1

    async def close(self):
        pass


def make_match_payload(
    match_id: str,
    puuid: str,
    creation: int,
    *,
    kills: int = 5,
    deaths: int = 2,
    assists: int = 3,
    win: bool = True,
    mode: str = "CLASSIC",
    duration: int = 1800,
    position: str = "MIDDLE",
    champion: str = "Ahri",
    champion_id: int = 103,
    cs: int = 180,
    neutral: int = 20,
    gold: int = 12000,
    queue_id: int = 420,
) -> Dict[str, Any]:
    """Raw match-v5 payload with the player plus one other participant."""
    player = {
        "puuid": puuid,
        "championId": champion_id,
        "championName": champion,
        "teamId": 100,
        "win": win,
        "kills": kills,
        "deaths": deaths,
        "assists": assists,
        "totalMinionsKilled": cs,
        "neutralMinionsKilled": neutral,
        "visionScore": 25,
        "goldEarned": gold,
        "teamPosition": position,
        "item0": 3089, "item1": 3020, "item2": 3157, "item3": 0, "item4": 0, "item5": 0, "item6": 3340,
        "summoner1Id": 4, "summoner2Id": 14,
        "champLevel": 16,
        "damageDealtToTurrets": 2000,
        "damageDealtToObjectives": 3000,
        "totalDamageDealtToChampions": 25000,
        "totalDamageTaken": 18000,
        "challenges": {"killParticipation": 0.5},
        "perks": {"styles": [
            {"description": "primaryStyle", "style": 8100, "selections": [{"perk": 8112}]},
            {"description": "subStyle", "style": 8200, "selections": [{"perk": 8226}]},
        ]},
    }
    other = dict(player, puuid="someone-else", championName="Zed", win=not win, teamId=200)
    return {
        "metadata": {"matchId": match_id, "participants": [puuid, "someone-else"]},
        "info": {
            "gameCreation": creation,
            "gameDuration": duration,
            "gameMode": mode,
            "queueId": queue_id,
            "participants": [other, player],
        },
    }


def make_stats(
    match_id: str = "EUW1_1",
    *,
    kills: int = 5,
    deaths: int = 2,
    assists: int = 3,
    win: bool = True,
    mode: str = "CLASSIC",
    duration: int = 1500,
    cs: int = 150,
    gold: int = 9000,
    position: str = "MIDDLE",
    champion: str = "Ahri",
    creation: int = 1_700_000_000_000,
    vision: int = 20,
    damage: int = 20000,
    kp: float = 0.5,
    items: Optional[List[int]] = None,
) -> MatchStats:
    return MatchStats.from_dict({
        "matchId": match_id,
        "gameMode": mode,
        "gameCreation": creation,
        "gameDuration": duration,
        "championName": champion,
        "championId": 103,
        "win": win,
        "kills": kills,
        "deaths": deaths,
        "assists": assists,
        "kda": kda_ratio(kills, deaths, assists),
        "killParticipation": kp,
        "totalMinionsKilled": cs,
        "visionScore": vision,
        "goldEarned": gold,
        "teamPosition": position,
        "damageToChampions": damage,
        "items": items or [],
    })


@pytest.fixture
def settings():
    return Settings(RIOT_API_KEY="test_key", _env_file=None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_riot():
    riot = FakeRiot()
    riot.accounts["faker#kr1"] = "puuid-faker"
    return riot


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path}/perftracker.db")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def ctx(settings, fake_riot, fake_redis, engine):
    return AppContext.build(settings, fake_riot, fake_redis, make_session_factory(engine), engine=engine)


