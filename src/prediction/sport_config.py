"""
Per-sport constants for the ensemble combine step.

Every gain and baseline the engine uses lives here, one SportConfig per sport.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

# Factors whose differential is a home-vs-away difference of two [0, 10] signals.
# The rest are centred signals on roughly [-5, 5].
PAIRED_FACTORS = frozenset({"team_form", "player_stats", "injuries", "travel_fatigue", "sentiment"})


@dataclass(frozen=True)
class SportConfig:
    sport: str
    home_base_score: float
    away_base_score: float
    score_variance: float
    home_court_base: float  # [0, 10] scale; 5 is neutral
    base_differential: float = 50.0
    paired_scale: float = 10.0
    centred_scale: float = 20.0

    def scale_for(self, factor: str) -> float:
        return self.paired_scale if factor in PAIRED_FACTORS else self.centred_scale


SPORT_CONFIGS: Dict[str, SportConfig] = {
    "nba": SportConfig("nba", home_base_score=110.0, away_base_score=105.0, score_variance=15.0, home_court_base=5.5),
    "nfl": SportConfig("nfl", home_base_score=24.0, away_base_score=21.0, score_variance=7.0, home_court_base=6.0),
    "mlb": SportConfig("mlb", home_base_score=4.5, away_base_score=4.0, score_variance=2.0, home_court_base=5.0),
    "nhl": SportConfig("nhl", home_base_score=3.2, away_base_score=2.9, score_variance=1.5, home_court_base=5.5),
}

DEFAULT_SPORT_CONFIG = SportConfig(
    "default", home_base_score=100.0, away_base_score=95.0, score_variance=10.0, home_court_base=5.0
)


def get_sport_config(sport: Optional[str], configs: Optional[Dict[str, SportConfig]] = None) -> SportConfig:
    """Look up a sport ("NBA", "basketball_nba" and "nba" all resolve to nba)."""
    configs = configs if configs is not None else SPORT_CONFIGS
    key = (sport or "").strip().lower()
    if key in configs:
        return configs[key]
    for name, config in configs.items():
        if name in key:
            return config
    return DEFAULT_SPORT_CONFIG
