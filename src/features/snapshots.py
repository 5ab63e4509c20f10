"""
Derived per-team and per-matchup signal snapshots.

Snapshots are recomputed on demand from raw records and are never persisted
on their own (the prediction record keeps the flattened feature vector).
Each snapshot has a neutral() constructor used whenever upstream data is
missing; `is_default` marks those so confidence can discount them.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal

Momentum = Literal["hot", "positive", "neutral", "cold", "unknown"]

NEUTRAL_SCORE = 5.0


@dataclass(frozen=True)
class TeamFormSnapshot:
    team_id: str
    games_played: int
    wins: int
    losses: int
    win_pct: float
    avg_points_for: float
    avg_points_against: float
    point_differential: float
    form_score: float  # 0-10
    momentum: Momentum
    last_5_wins: int = 0
    home_games: int = 0
    home_wins: int = 0
    is_default: bool = False

    @classmethod
    def neutral(cls, team_id: str) -> "TeamFormSnapshot":
        return cls(
            team_id=team_id,
            games_played=0,
            wins=0,
            losses=0,
            win_pct=0.5,
            avg_points_for=0.0,
            avg_points_against=0.0,
            point_differential=0.0,
            form_score=NEUTRAL_SCORE,
            momentum="unknown",
            is_default=True,
        )

    @property
    def home_win_pct(self) -> float | None:
        if self.home_games == 0:
            return None
        return self.home_wins / self.home_games

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FatigueSnapshot:
    team_id: str
    days_rest: int
    games_last_7_days: int
    is_back_to_back: bool
    fatigue_score: float  # 0-10, 0 = fresh
    travel_miles: float = 0.0
    time_zones_crossed: int = 0
    is_default: bool = False

    @classmethod
    def neutral(cls, team_id: str) -> "FatigueSnapshot":
        # No recent games: treat the team as fully rested
        return cls(
            team_id=team_id,
            days_rest=7,
            games_last_7_days=0,
            is_back_to_back=False,
            fatigue_score=0.0,
            is_default=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HeadToHeadSummary:
    team_a: str
    team_b: str
    total_games: int
    wins_team_a: int
    wins_team_b: int
    avg_margin: float  # from team A's perspective
    h2h_score: float  # 0-10, 5 = neutral
    is_default: bool = False

    @classmethod
    def neutral(cls, team_a: str, team_b: str) -> "HeadToHeadSummary":
        return cls(
            team_a=team_a,
            team_b=team_b,
            total_games=0,
            wins_team_a=0,
            wins_team_b=0,
            avg_margin=0.0,
            h2h_score=NEUTRAL_SCORE,
            is_default=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InjuryImpact:
    team_id: str
    active_injury_count: int
    key_players_out: int
    impact_score: float  # 0-10, 0 = no impact
    is_default: bool = False

    @classmethod
    def neutral(cls, team_id: str) -> "InjuryImpact":
        return cls(
            team_id=team_id,
            active_injury_count=0,
            key_players_out=0,
            impact_score=0.0,
            is_default=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PlayerMatchup:
    home_avg_efficiency: float  # 0-100
    away_avg_efficiency: float
    home_player_count: int
    away_player_count: int
    is_default: bool = False

    @classmethod
    def neutral(cls) -> "PlayerMatchup":
        return cls(50.0, 50.0, 0, 0, is_default=True)

    @property
    def home_advantage(self) -> float:
        return min(10.0, max(0.0, self.home_avg_efficiency / 10.0))

    @property
    def away_advantage(self) -> float:
        return min(10.0, max(0.0, self.away_avg_efficiency / 10.0))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
