"""Explainability: key factors, variance and upset risk for a prediction."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List

import numpy as np

from src.features.vector import FeatureVector
from src.prediction.weights import WeightSet

FACTOR_LABELS: Dict[str, str] = {
    "team_form": "Team Form",
    "player_stats": "Player Performance",
    "injuries": "Injury Impact",
    "travel_fatigue": "Travel & Fatigue",
    "head_to_head": "Head-to-Head History",
    "home_advantage": "Home Court Advantage",
    "rest_differential": "Rest Differential",
    "weather": "Weather Conditions",
    "sentiment": "Team Sentiment",
    "market": "Market Signal",
}

KEY_FACTOR_COUNT = 3
MAX_UPSET_PROBABILITY = 45.0


@dataclass(frozen=True)
class KeyFactor:
    factor: str
    label: str
    impact: float
    favors: str  # "home" | "away" | "neutral"

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def key_factors(vector: FeatureVector, weights: WeightSet, count: int = KEY_FACTOR_COUNT) -> List[KeyFactor]:
    """Factors ranked by |differential| * weight * 10, top `count`."""
    ranked = []
    for factor, diff in vector.factor_differentials().items():
        impact = round(abs(diff) * weights[factor] * 10.0, 1)
        favors = "home" if diff > 0 else "away" if diff < 0 else "neutral"
        ranked.append(KeyFactor(factor, FACTOR_LABELS[factor], impact, favors))
    # stable sort keeps factor declaration order among equal impacts
    ranked.sort(key=lambda k: k.impact, reverse=True)
    return ranked[:count]


def variance_score(vector: FeatureVector) -> float:
    """Mean absolute home/away gap over form, player, injury and fatigue."""
    gaps = [
        abs(vector.home_form - vector.away_form),
        abs(vector.home_player_advantage - vector.away_player_advantage),
        abs(vector.home_injury_impact - vector.away_injury_impact),
        abs(vector.home_fatigue - vector.away_fatigue),
    ]
    return round(float(np.mean(gaps)), 2)


def upset_probability(home_win_pct: float, away_win_pct: float, variance: float) -> float:
    """Chance (percent) the underdog wins, capped at 45."""
    raw = 100.0 - max(home_win_pct, away_win_pct) + 2.0 * variance
    return round(float(np.clip(raw, 0.0, MAX_UPSET_PROBABILITY)), 1)
