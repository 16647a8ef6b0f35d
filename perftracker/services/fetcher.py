# perftracker/services/fetcher.py
# ============================================================================
# Fan-out borné : détails de N matchs en parallèle (Semaphore)
# Best effort : un match en échec est retiré, jamais fatal pour le lot
# ============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from perftracker.cache.tiered import TieredSource
from perftracker.models.performance import MatchStats, kda_ratio, sort_newest_first
from perftracker.riot.client import RiotAPIError

log = logging.getLogger(__name__)


class ExtractionError(ValueError):
    """The match payload does not contain the requested player."""
    pass


def _perk_ids(perks: Optional[Dict[str, Any]]) -> tuple[int, int]:
    primary_rune, secondary_style = 0, 0
    for style in (perks or {}).get("styles") or []:
        if style.get("description") == "primaryStyle" and style.get("selections"):
            primary_rune = int(style["selections"][0].get("perk", 0))
        if style.get("description") == "subStyle":
            secondary_style = int(style.get("style", 0))
    return primary_rune, secondary_style


def extract_player_stats(
    match: Dict[str, Any],
    puuid: str,
    champion_names: Optional[Mapping[int, str]] = None,
) -> MatchStats:
    """
    Convertit un payload match-v5 en MatchStats pour `puuid`.

    Args:
        match: Réponse brute /lol/match/v5/matches/{id}
        puuid: Joueur dont on extrait la ligne participant
        champion_names: championId → nom, utilisé si `championName` est vide

    Raises:
        ExtractionError: payload incomplet ou joueur absent du match
    """
    metadata = match.get("metadata") or {}
    info = match.get("info") or {}
    match_id = metadata.get("matchId", "?")
    participants = info.get("participants")
    if not participants:
        raise ExtractionError(f"participants list is empty for match {match_id}")

    p = next((x for x in participants if x.get("puuid") == puuid), None)
    if p is None:
        raise ExtractionError(f"player PUUID {puuid} not found in match {match_id} participants")

    kills, deaths, assists = p.get("kills", 0), p.get("deaths", 0), p.get("assists", 0)
    champion_id = int(p.get("championId", 0))
    champion_name = p.get("championName") or ""
    if not champion_name and champion_names:
        champion_name = champion_names.get(champion_id, "")

    primary_rune, secondary_style = _perk_ids(p.get("perks"))

    return MatchStats(
        match_id=match_id,
        game_mode=info.get("gameMode", ""),
        game_creation=int(info.get("gameCreation", 0)),
        game_duration=int(info.get("gameDuration", 0)),
        champion_name=champion_name,
        champion_id=champion_id,
        win=bool(p.get("win", False)),
        kills=kills,
        deaths=deaths,
        assists=assists,
        kda=kda_ratio(kills, deaths, assists),
        kill_participation=float((p.get("challenges") or {}).get("killParticipation", 0.0)),
        total_minions_killed=p.get("totalMinionsKilled", 0) + p.get("neutralMinionsKilled", 0),
        vision_score=p.get("visionScore", 0),
        gold_earned=p.get("goldEarned", 0),
        team_position=p.get("teamPosition", ""),
        items=[p.get(f"item{i}", 0) for i in range(7)],
        summoner_spells=[p.get("summoner1Id", 0), p.get("summoner2Id", 0)],
        primary_rune=primary_rune,
        secondary_style=secondary_style,
        champ_level=p.get("champLevel", 0),
        damage_to_turrets=p.get("damageDealtToTurrets", 0),
        damage_to_objectives=p.get("damageDealtToObjectives", 0),
        damage_to_champions=p.get("totalDamageDealtToChampions", 0),
        total_damage_taken=p.get("totalDamageTaken", 0),
        team_id=p.get("teamId", 0),
        queue_id=int(info.get("queueId", 0)),
    )


@dataclass
class FetchBatch:
    matches: List[MatchStats]
    requested: int                 # nombre d'IDs soumis au fan-out
    timed_out: bool = False


class MatchFetcher:
    """Récupère et convertit un lot de matchs avec au plus `limit` requêtes en vol."""

    def __init__(
        self,
        source: TieredSource,
        limit: int = 20,
        champion_names: Optional[Mapping[int, str]] = None,
    ):
        self.source = source
        self.limit = limit
        self.champion_names = champion_names

    async def _fetch_one(self, sem: asyncio.Semaphore, region: str, match_id: str, puuid: str) -> Optional[MatchStats]:
        async with sem:
            try:
                match = await self.source.match_detail(region, match_id)
                if match is None:
                    return None
                return extract_player_stats(match, puuid, self.champion_names)
            except (RiotAPIError, ExtractionError) as e:
                log.warning(f"Dropping match {match_id}: {e}")
                return None

    async def fetch_batch(
        self,
        region: str,
        match_ids: Sequence[str],
        puuid: str,
        deadline: Optional[float] = None,
    ) -> FetchBatch:
        """
        Fan-out sur `match_ids`.

        Args:
            deadline: Secondes max ; au-delà les requêtes restantes sont
                      annulées et seuls les matchs déjà collectés sont rendus.

        Returns:
            FetchBatch: matchs triés par gameCreation décroissant, plus
                        `timed_out` si le deadline a coupé le lot
        """
        if not match_ids:
            return FetchBatch(matches=[], requested=0)

        sem = asyncio.Semaphore(self.limit)
        tasks = [
            asyncio.create_task(self._fetch_one(sem, region, mid, puuid))
            for mid in match_ids
        ]
        done, pending = await asyncio.wait(tasks, timeout=deadline)
        if pending:
            log.warning(f"Deadline reached, cancelling {len(pending)}/{len(tasks)} match fetches")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        matches: List[MatchStats] = []
        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None:
                log.error(f"Unexpected error while fetching match: {exc}")
                continue
            stats = task.result()
            if stats is not None:
                matches.append(stats)

        dropped = len(match_ids) - len(matches)
        if dropped:
            log.info(f"Fetched {len(matches)}/{len(match_ids)} matches for {puuid} ({dropped} dropped)")
        return FetchBatch(
            matches=sort_newest_first(matches),
            requested=len(match_ids),
            timed_out=bool(pending),
        )

    async def fetch_all(
        self,
        region: str,
        match_ids: Sequence[str],
        puuid: str,
        deadline: Optional[float] = None,
    ) -> List[MatchStats]:
        batch = await self.fetch_batch(region, match_ids, puuid, deadline)
        return batch.matches
