"""
Pure scoring functions for the per-team signals.

Every function maps raw counts onto a bounded 0-10 scale and is safe on empty
input. The Feature Adapter feeds these from store records; tests call them
directly.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import numpy as np

from src.data.records import GameRecord, InjuryRecord, InjurySeverity, PlayerRecord

SCORE_MIN = 0.0
SCORE_MAX = 10.0

# Fatigue contribution by days since last game; four or more days is fully rested
FATIGUE_BY_DAYS_REST: Mapping[int, float] = {0: 10.0, 1: 7.0, 2: 4.0, 3: 2.0}
GAMES_IN_WEEK_BEFORE_PENALTY = 2

INJURY_SEVERITY_WEIGHTS: Mapping[InjurySeverity, float] = {
    InjurySeverity.SEVERE: 3.0,
    InjurySeverity.MODERATE: 2.0,
    InjurySeverity.MINOR: 1.0,
    InjurySeverity.UNKNOWN: 0.0,
}

DEFAULT_PLAYER_EFFICIENCY = 50.0


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    return float(np.clip(value, low, high))


def form_score(win_pct: float, avg_points_for: float, avg_points_against: float, last_5_wins: int) -> float:
    """
    Form score on 0-10.

    Win% contributes 0-5, point differential 0-5 (±25 points saturates),
    and wins in the last five games add up to 2 before the final clamp.
    """
    point_component = clamp((avg_points_for - avg_points_against) / 10.0, -2.5, 2.5) + 2.5
    raw = 5.0 * win_pct + point_component + 2.0 * (last_5_wins / 5.0)
    return round(clamp(raw), 1)


def momentum_label(last_5_wins: int) -> str:
    if last_5_wins >= 4:
        return "hot"
    if last_5_wins >= 3:
        return "positive"
    if last_5_wins <= 1:
        return "cold"
    return "neutral"


def summarize_form(team_id: str, games: Sequence[GameRecord]) -> dict:
    """
    Aggregate a team's recent completed games (newest first) into form fields.

    Returns an empty dict when there are no games; callers use the neutral
    snapshot in that case.
    """
    if not games:
        return {}

    wins = 0
    last_5_wins = 0
    home_games = 0
    home_wins = 0
    points_for = 0.0
    points_against = 0.0

    for index, game in enumerate(games):
        scored, allowed = game.score_for(team_id)
        won = scored > allowed
        is_home = game.home_team_id == team_id
        if won:
            wins += 1
            if index < 5:
                last_5_wins += 1
        if is_home:
            home_games += 1
            if won:
                home_wins += 1
        points_for += scored
        points_against += allowed

    played = len(games)
    win_pct = wins / played
    avg_for = points_for / played
    avg_against = points_against / played

    return {
        "games_played": played,
        "wins": wins,
        "losses": played - wins,
        "win_pct": round(win_pct, 3),
        "avg_points_for": round(avg_for, 1),
        "avg_points_against": round(avg_against, 1),
        "point_differential": round(avg_for - avg_against, 1),
        "form_score": form_score(win_pct, avg_for, avg_against, last_5_wins),
        "momentum": momentum_label(last_5_wins),
        "last_5_wins": last_5_wins,
        "home_games": home_games,
        "home_wins": home_wins,
    }


def fatigue_score(days_rest: int, games_last_7_days: int) -> float:
    """
    Fatigue on 0-10 (0 = fresh).

    Non-increasing in days_rest and non-decreasing in games_last_7_days.
    """
    base = FATIGUE_BY_DAYS_REST.get(max(days_rest, 0), 0.0) if days_rest < 4 else 0.0
    excess_games = max(0, games_last_7_days - GAMES_IN_WEEK_BEFORE_PENALTY)
    return clamp(base + excess_games)


def h2h_score(team_a_wins: int, total_games: int) -> float:
    """Team A dominance on 0-10; 5.0 with no meetings."""
    if total_games <= 0:
        return 5.0
    return round(clamp(10.0 * team_a_wins / total_games), 1)


def injury_impact_score(injuries: Iterable[InjuryRecord]) -> float:
    """Severity-weighted sum over active injuries, capped at 10."""
    total = sum(
        INJURY_SEVERITY_WEIGHTS[injury.severity]
        for injury in injuries
        if injury.counts_as_active
    )
    return clamp(total)


def player_efficiency(stats: Mapping[str, float], sport: str | None) -> float:
    """Sport-specific efficiency on 0-100; 50 when stats are missing or the sport is unknown."""
    if not stats:
        return DEFAULT_PLAYER_EFFICIENCY

    sport_key = (sport or "").lower()
    if sport_key.startswith("nfl"):
        raw = (
            stats.get("passing_yards", 0.0) / 30.0
            + stats.get("touchdowns", 0.0) * 5.0
            + stats.get("rushing_yards", 0.0) / 10.0
        )
    elif sport_key.startswith("nba"):
        raw = stats.get("points", 0.0) / 2.0 + stats.get("assists", 0.0) + stats.get("rebounds", 0.0)
    elif sport_key.startswith("mlb"):
        raw = (stats.get("batting_average", 0.0) + stats.get("on_base_percentage", 0.0)) / 2.0 * 100.0
    elif sport_key.startswith("nhl"):
        raw = stats.get("goals", 0.0) * 3.0 + stats.get("assists", 0.0) * 2.0
    else:
        return DEFAULT_PLAYER_EFFICIENCY

    return clamp(raw, 0.0, 100.0)


def average_efficiency(players: Sequence[PlayerRecord], sport: str | None) -> float:
    if not players:
        return DEFAULT_PLAYER_EFFICIENCY
    values = [player_efficiency(p.stats, p.sport or sport) for p in players]
    return float(np.mean(values))
