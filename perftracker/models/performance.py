# perftracker/models/performance.py
# ============================================================================
# MatchStats (1 joueur, 1 match) & UserPerformance (historique d'un PUUID)
# Sérialisation camelCase : même format en Redis et dans la colonne JSON
# ============================================================================

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List

CLASSIC_MODE = "CLASSIC"


def kda_ratio(kills: int, deaths: int, assists: int) -> float:
    """(K+A)/D, ou K+A quand D == 0."""
    if deaths > 0:
        return (kills + assists) / deaths
    return float(kills + assists)


def is_classic_mode(game_mode: str) -> bool:
    return (game_mode or "").upper() == CLASSIC_MODE


@dataclass
class MatchStats:
    """Stats d'un joueur pour un match."""
    __slots__ = (
        'match_id', 'game_mode', 'game_creation', 'game_duration',
        'champion_name', 'champion_id', 'win', 'kills', 'deaths', 'assists',
        'kda', 'kill_participation', 'total_minions_killed', 'vision_score',
        'gold_earned', 'team_position', 'items', 'summoner_spells',
        'primary_rune', 'secondary_style', 'champ_level', 'damage_to_turrets',
        'damage_to_objectives', 'damage_to_champions', 'total_damage_taken',
        'team_id', 'queue_id',
    )

    match_id: str
    game_mode: str
    game_creation: int                       # epoch ms
    game_duration: int                       # secondes
    champion_name: str
    champion_id: int
    win: bool
    kills: int
    deaths: int
    assists: int
    kda: float
    kill_participation: float
    total_minions_killed: int                # lane + neutres
    vision_score: int
    gold_earned: int
    team_position: str
    items: List[int]                         # item0..item5 + trinket
    summoner_spells: List[int]
    primary_rune: int
    secondary_style: int
    champ_level: int
    damage_to_turrets: int
    damage_to_objectives: int
    damage_to_champions: int
    total_damage_taken: int
    team_id: int
    queue_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matchId": self.match_id,
            "gameMode": self.game_mode,
            "gameCreation": self.game_creation,
            "gameDuration": self.game_duration,
            "championName": self.champion_name,
            "championId": self.champion_id,
            "win": self.win,
            "kills": self.kills,
            "deaths": self.deaths,
            "assists": self.assists,
            "kda": self.kda,
            "killParticipation": self.kill_participation,
            "totalMinionsKilled": self.total_minions_killed,
            "visionScore": self.vision_score,
            "goldEarned": self.gold_earned,
            "teamPosition": self.team_position,
            "items": list(self.items),
            "summonerSpells": list(self.summoner_spells),
            "primaryRune": self.primary_rune,
            "secondaryStyle": self.secondary_style,
            "champLevel": self.champ_level,
            "damageToTurrets": self.damage_to_turrets,
            "damageToObjectives": self.damage_to_objectives,
            "damageToChampions": self.damage_to_champions,
            "totalDamageTaken": self.total_damage_taken,
            "teamId": self.team_id,
            "queueId": self.queue_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchStats":
        kills = int(data.get("kills", 0))
        deaths = int(data.get("deaths", 0))
        assists = int(data.get("assists", 0))
        return cls(
            match_id=data["matchId"],
            game_mode=data.get("gameMode", ""),
            game_creation=int(data.get("gameCreation", 0)),
            game_duration=int(data.get("gameDuration", 0)),
            champion_name=data.get("championName", ""),
            champion_id=int(data.get("championId", 0)),
            win=bool(data.get("win", False)),
            kills=kills,
            deaths=deaths,
            assists=assists,
            kda=float(data.get("kda", kda_ratio(kills, deaths, assists))),
            kill_participation=float(data.get("killParticipation", 0.0)),
            total_minions_killed=int(data.get("totalMinionsKilled", 0)),
            vision_score=int(data.get("visionScore", 0)),
            gold_earned=int(data.get("goldEarned", 0)),
            team_position=data.get("teamPosition", ""),
            items=list(data.get("items") or []),
            summoner_spells=list(data.get("summonerSpells") or []),
            primary_rune=int(data.get("primaryRune", 0)),
            secondary_style=int(data.get("secondaryStyle", 0)),
            champ_level=int(data.get("champLevel", 0)),
            damage_to_turrets=int(data.get("damageToTurrets", 0)),
            damage_to_objectives=int(data.get("damageToObjectives", 0)),
            damage_to_champions=int(data.get("damageToChampions", 0)),
            total_damage_taken=int(data.get("totalDamageTaken", 0)),
            team_id=int(data.get("teamId", 0)),
            queue_id=int(data.get("queueId", 0)),
        )


def sort_newest_first(matches: List[MatchStats]) -> List[MatchStats]:
    return sorted(matches, key=lambda m: m.game_creation, reverse=True)


@dataclass
class UserPerformance:
    """Historique d'un joueur pour une région (clé : puuid + region)."""

    puuid: str
    region: str
    riot_id: str                             # GameName#TagLine
    matches: List[MatchStats] = field(default_factory=list)
    updated_at: int = 0                      # epoch secondes

    @classmethod
    def empty(cls, puuid: str, region: str, riot_id: str) -> "UserPerformance":
        return cls(puuid=puuid, region=region, riot_id=riot_id, matches=[], updated_at=int(time.time()))

    def trimmed(self, count: int) -> "UserPerformance":
        """Vue sur les `count` matchs les plus récents ; l'objet d'origine n'est pas modifié."""
        return replace(self, matches=list(self.matches[:count]))

    def age(self, now: float | None = None) -> float:
        return (time.time() if now is None else now) - self.updated_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "puuid": self.puuid,
            "region": self.region,
            "riotId": self.riot_id,
            "matches": [m.to_dict() for m in self.matches],
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPerformance":
        return cls(
            puuid=data["puuid"],
            region=data["region"],
            riot_id=data.get("riotId", ""),
            matches=[MatchStats.from_dict(m) for m in data.get("matches") or []],
            updated_at=int(data.get("updatedAt", 0)),
        )
