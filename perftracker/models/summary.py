# perftracker/models/summary.py
# ============================================================================
# Vues dérivées (jamais persistées comme source de vérité)
# ============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from perftracker.models.performance import MatchStats


@dataclass
class OverallStats:
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_kills: int = 0
    total_deaths: int = 0
    total_assists: int = 0
    avg_kills: float = 0.0
    avg_deaths: float = 0.0
    avg_assists: float = 0.0
    overall_kda: float = 0.0
    avg_game_duration: float = 0.0
    total_game_time: int = 0
    avg_vision_score: float = 0.0
    avg_cs_per_min: float = 0.0
    avg_gold_per_min: float = 0.0
    avg_damage_to_champions: float = 0.0
    avg_kill_participation: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "totalKills": self.total_kills,
            "totalDeaths": self.total_deaths,
            "totalAssists": self.total_assists,
            "avgKills": self.avg_kills,
            "avgDeaths": self.avg_deaths,
            "avgAssists": self.avg_assists,
            "overallKDA": self.overall_kda,
            "avgGameDuration": self.avg_game_duration,
            "totalGameTime": self.total_game_time,
            "avgVisionScore": self.avg_vision_score,
            "avgCSPerMin": self.avg_cs_per_min,
            "avgGoldPerMin": self.avg_gold_per_min,
            "avgDamageToChampions": self.avg_damage_to_champions,
            "avgKillParticipation": self.avg_kill_participation,
        }


@dataclass
class RoleStats:
    role: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_kills: int = 0
    total_deaths: int = 0
    total_assists: int = 0
    avg_kills: float = 0.0
    avg_deaths: float = 0.0
    avg_assists: float = 0.0
    role_kda: float = 0.0
    avg_vision_score: float = 0.0
    avg_cs_per_min: float = 0.0
    avg_gold_per_min: float = 0.0
    avg_damage_to_champions: float = 0.0
    avg_kill_participation: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "gamesPlayed": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "totalKills": self.total_kills,
            "totalDeaths": self.total_deaths,
            "totalAssists": self.total_assists,
            "avgKills": self.avg_kills,
            "avgDeaths": self.avg_deaths,
            "avgAssists": self.avg_assists,
            "roleKDA": self.role_kda,
            "avgVisionScore": self.avg_vision_score,
            "avgCSPerMin": self.avg_cs_per_min,
            "avgGoldPerMin": self.avg_gold_per_min,
            "avgDamageToChampions": self.avg_damage_to_champions,
            "avgKillParticipation": self.avg_kill_participation,
        }


@dataclass
class ChampionStats:
    champion_name: str
    champion_id: int = 0
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_kills: int = 0
    total_deaths: int = 0
    total_assists: int = 0
    avg_kills: float = 0.0
    avg_deaths: float = 0.0
    avg_assists: float = 0.0
    champion_kda: float = 0.0
    best_kda: float = -1.0
    worst_kda: float = 999999.0
    avg_vision_score: float = 0.0
    avg_cs_per_min: float = 0.0
    avg_gold_per_min: float = 0.0
    avg_damage_to_champions: float = 0.0
    avg_kill_participation: float = 0.0
    last_played: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "championName": self.champion_name,
            "championId": self.champion_id,
            "gamesPlayed": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "totalKills": self.total_kills,
            "totalDeaths": self.total_deaths,
            "totalAssists": self.total_assists,
            "avgKills": self.avg_kills,
            "avgDeaths": self.avg_deaths,
            "avgAssists": self.avg_assists,
            "championKDA": self.champion_kda,
            "bestKDA": self.best_kda,
            "worstKDA": self.worst_kda,
            "avgVisionScore": self.avg_vision_score,
            "avgCSPerMin": self.avg_cs_per_min,
            "avgGoldPerMin": self.avg_gold_per_min,
            "avgDamageToChampions": self.avg_damage_to_champions,
            "avgKillParticipation": self.avg_kill_participation,
            "lastPlayed": self.last_played,
        }


@dataclass
class RecentGamesSummary:
    puuid: str
    region: str
    riot_id: str
    total_matches: int
    overall_stats: OverallStats
    role_stats: Dict[str, RoleStats]
    champion_stats: Dict[str, ChampionStats]
    recent_matches: List[MatchStats]
    last_updated: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "puuid": self.puuid,
            "region": self.region,
            "riotId": self.riot_id,
            "totalMatches": self.total_matches,
            "overallStats": self.overall_stats.to_dict(),
            "roleStats": {k: v.to_dict() for k, v in self.role_stats.items()},
            "championStats": {k: v.to_dict() for k, v in self.champion_stats.items()},
            "recentMatches": [m.to_dict() for m in self.recent_matches],
            "lastUpdated": self.last_updated,
        }


@dataclass
class IncrementalStats:
    """Stats légères d'une page (pas de ventilation rôle/champion)."""
    games: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    kda: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "games": self.games,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": self.win_rate,
            "kills": self.kills,
            "deaths": self.deaths,
            "assists": self.assists,
            "kda": self.kda,
        }


@dataclass
class Pagination:
    offset: int
    limit: int
    has_more: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"offset": self.offset, "limit": self.limit, "hasMore": self.has_more}


@dataclass
class PlayerDashboard:
    matches: List[MatchStats]
    pagination: Pagination
    incremental_stats: IncrementalStats
    summary: Optional[RecentGamesSummary] = None   # uniquement pour offset == 0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "matches": [m.to_dict() for m in self.matches],
            "pagination": self.pagination.to_dict(),
            "incrementalStats": self.incremental_stats.to_dict(),
        }
        if self.summary is not None:
            data["summary"] = self.summary.to_dict()
        return data
