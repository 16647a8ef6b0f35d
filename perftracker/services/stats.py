# perftracker/services/stats.py
# ============================================================================
# Agrégation des stats récentes : global / par rôle / par champion
# Fonctions pures, aucune I/O, aucun état caché
# ============================================================================

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from perftracker.models.performance import MatchStats, is_classic_mode, kda_ratio
from perftracker.models.summary import (
    ChampionStats,
    IncrementalStats,
    OverallStats,
    RecentGamesSummary,
    RoleStats,
)

_ROLE_BY_POSITION = {
    "TOP": "Top",
    "JUNGLE": "Jungle",
    "MIDDLE": "Mid",
    "MID": "Mid",
    "BOTTOM": "Bot",
    "BOT": "Bot",
    "UTILITY": "Support",
    "SUPPORT": "Support",
}

_ROLE_BY_MODE = {
    "ARAM": "ARAM",
    "CHERRY": "Arena",
}


def normalize_role(team_position: str, game_mode: str) -> str:
    """Clé de rôle : certains modes font office de rôle (ARAM, Arena)."""
    by_mode = _ROLE_BY_MODE.get((game_mode or "").upper())
    if by_mode:
        return by_mode
    if not team_position:
        return "Unknown"
    return _ROLE_BY_POSITION.get(team_position.upper(), team_position)


@dataclass
class _Totals:
    """Sommes communes aux trois vues."""
    games: int = 0
    wins: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    game_time: int = 0
    vision: int = 0
    damage: int = 0
    kill_participation: float = 0.0
    # CS/gold/min : parties CLASSIC uniquement
    classic_time: int = 0
    classic_cs: int = 0
    classic_gold: int = 0

    def add(self, m: MatchStats) -> None:
        self.games += 1
        if m.win:
            self.wins += 1
        self.kills += m.kills
        self.deaths += m.deaths
        self.assists += m.assists
        self.game_time += m.game_duration
        self.vision += m.vision_score
        self.damage += m.damage_to_champions
        self.kill_participation += m.kill_participation
        if is_classic_mode(m.game_mode):
            self.classic_time += m.game_duration
            self.classic_cs += m.total_minions_killed
            self.classic_gold += m.gold_earned

    @property
    def losses(self) -> int:
        return self.games - self.wins

    @property
    def win_rate(self) -> float:
        return self.wins / self.games * 100 if self.games else 0.0

    @property
    def kda(self) -> float:
        return kda_ratio(self.kills, self.deaths, self.assists)

    def avg(self, total: float) -> float:
        return total / self.games if self.games else 0.0

    def per_min(self, total: int) -> float:
        if self.classic_time <= 0:
            return 0.0
        return total / self.classic_time * 60


def _totals(matches: Iterable[MatchStats]) -> _Totals:
    t = _Totals()
    for m in matches:
        t.add(m)
    return t


def calculate_overall_stats(matches: Sequence[MatchStats]) -> OverallStats:
    if not matches:
        return OverallStats()
    t = _totals(matches)
    return OverallStats(
        wins=t.wins,
        losses=t.losses,
        win_rate=t.win_rate,
        total_kills=t.kills,
        total_deaths=t.deaths,
        total_assists=t.assists,
        avg_kills=t.avg(t.kills),
        avg_deaths=t.avg(t.deaths),
        avg_assists=t.avg(t.assists),
        overall_kda=t.kda,
        avg_game_duration=t.avg(t.game_time),
        total_game_time=t.game_time,
        avg_vision_score=t.avg(t.vision),
        avg_cs_per_min=t.per_min(t.classic_cs),
        avg_gold_per_min=t.per_min(t.classic_gold),
        avg_damage_to_champions=t.avg(t.damage),
        avg_kill_participation=t.avg(t.kill_participation),
    )


def calculate_role_stats(matches: Sequence[MatchStats]) -> Dict[str, RoleStats]:
    groups: Dict[str, List[MatchStats]] = defaultdict(list)
    for m in matches:
        groups[normalize_role(m.team_position, m.game_mode)].append(m)

    result: Dict[str, RoleStats] = {}
    for role, group in groups.items():
        t = _totals(group)
        result[role] = RoleStats(
            role=role,
            games_played=t.games,
            wins=t.wins,
            losses=t.losses,
            win_rate=t.win_rate,
            total_kills=t.kills,
            total_deaths=t.deaths,
            total_assists=t.assists,
            avg_kills=t.avg(t.kills),
            avg_deaths=t.avg(t.deaths),
            avg_assists=t.avg(t.assists),
            role_kda=t.kda,
            avg_vision_score=t.avg(t.vision),
            avg_cs_per_min=t.per_min(t.classic_cs),
            avg_gold_per_min=t.per_min(t.classic_gold),
            avg_damage_to_champions=t.avg(t.damage),
            avg_kill_participation=t.avg(t.kill_participation),
        )
    return result


def calculate_champion_stats(matches: Sequence[MatchStats]) -> Dict[str, ChampionStats]:
    groups: Dict[str, List[MatchStats]] = defaultdict(list)
    for m in matches:
        groups[m.champion_name].append(m)

    result: Dict[str, ChampionStats] = {}
    for name, group in groups.items():
        t = _totals(group)
        best_kda, worst_kda = -1.0, 999999.0
        last_played = group[0].game_creation
        for m in group:
            best_kda = max(best_kda, m.kda)
            worst_kda = min(worst_kda, m.kda)
            last_played = max(last_played, m.game_creation)

        result[name] = ChampionStats(
            champion_name=name,
            champion_id=group[0].champion_id,
            games_played=t.games,
            wins=t.wins,
            losses=t.losses,
            win_rate=t.win_rate,
            total_kills=t.kills,
            total_deaths=t.deaths,
            total_assists=t.assists,
            avg_kills=t.avg(t.kills),
            avg_deaths=t.avg(t.deaths),
            avg_assists=t.avg(t.assists),
            champion_kda=t.kda,
            best_kda=best_kda,
            worst_kda=worst_kda,
            avg_vision_score=t.avg(t.vision),
            avg_cs_per_min=t.per_min(t.classic_cs),
            avg_gold_per_min=t.per_min(t.classic_gold),
            avg_damage_to_champions=t.avg(t.damage),
            avg_kill_participation=t.avg(t.kill_participation),
            last_played=last_played,
        )
    return result


def calculate_incremental_stats(matches: Sequence[MatchStats]) -> IncrementalStats:
    """Version légère pour les pages suivantes d'un scroll paginé."""
    t = _totals(matches)
    return IncrementalStats(
        games=t.games,
        wins=t.wins,
        losses=t.losses,
        win_rate=t.win_rate,
        kills=t.kills,
        deaths=t.deaths,
        assists=t.assists,
        kda=t.kda,
    )


def calculate_recent_games_summary(
    matches: Sequence[MatchStats],
    puuid: str,
    region: str,
    riot_id: str,
    now: int | None = None,
) -> RecentGamesSummary:
    """
    Construit le résumé complet à partir des MatchStats.

    Args:
        matches: Matchs du joueur (déjà triés du plus récent au plus ancien)
        puuid, region, riot_id: Identité renvoyée telle quelle
        now: Horodatage `lastUpdated` (epoch s), défaut : maintenant

    Returns:
        RecentGamesSummary: liste vide → agrégats à zéro, maps vides
    """
    return RecentGamesSummary(
        puuid=puuid,
        region=region,
        riot_id=riot_id,
        total_matches=len(matches),
        overall_stats=calculate_overall_stats(matches),
        role_stats=calculate_role_stats(matches),
        champion_stats=calculate_champion_stats(matches),
        recent_matches=list(matches),
        last_updated=int(time.time()) if now is None else now,
    )
