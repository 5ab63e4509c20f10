"""
Feature vector for one matchup.

The vector is the full, bounded input to the ensemble combine step and is
stored verbatim on each prediction record so the tuner can re-score every
factor later without touching the data store again.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

import numpy as np

# field -> (low, high, neutral default)
FEATURE_BOUNDS: Dict[str, Tuple[float, float, float]] = {
    "home_form": (0.0, 10.0, 5.0),
    "away_form": (0.0, 10.0, 5.0),
    "home_fatigue": (0.0, 10.0, 0.0),
    "away_fatigue": (0.0, 10.0, 0.0),
    "home_injury_impact": (0.0, 10.0, 0.0),
    "away_injury_impact": (0.0, 10.0, 0.0),
    "home_player_advantage": (0.0, 10.0, 5.0),
    "away_player_advantage": (0.0, 10.0, 5.0),
    "h2h_advantage": (0.0, 10.0, 5.0),
    "home_court_advantage": (0.0, 10.0, 5.0),
    "rest_advantage": (-5.0, 5.0, 0.0),
    "weather_impact": (-5.0, 5.0, 0.0),
    "home_sentiment": (0.0, 10.0, 5.0),
    "away_sentiment": (0.0, 10.0, 5.0),
    "market_signal": (-5.0, 5.0, 0.0),
}


def _bounded(name: str, value: Optional[float]) -> float:
    low, high, neutral = FEATURE_BOUNDS[name]
    if value is None:
        return neutral
    value = float(value)
    if np.isnan(value):
        return neutral
    return float(np.clip(value, low, high))


@dataclass(frozen=True)
class ContextSignals:
    """
    Low-weight contextual inputs supplied by external collaborators.

    Any field left as None is treated as unavailable and defaults to neutral.
    """

    weather_impact: Optional[float] = None
    home_sentiment: Optional[float] = None
    away_sentiment: Optional[float] = None
    market_signal: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ContextSignals":
        data = data or {}
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})


@dataclass(frozen=True)
class FeatureVector:
    home_form: float = 5.0
    away_form: float = 5.0
    home_fatigue: float = 0.0
    away_fatigue: float = 0.0
    home_injury_impact: float = 0.0
    away_injury_impact: float = 0.0
    home_player_advantage: float = 5.0
    away_player_advantage: float = 5.0
    h2h_advantage: float = 5.0
    home_court_advantage: float = 5.0
    rest_advantage: float = 0.0
    weather_impact: float = 0.0
    home_sentiment: float = 5.0
    away_sentiment: float = 5.0
    market_signal: float = 0.0
    # factor name -> True when computed from real data, False when defaulted
    availability: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def build(cls, availability: Optional[Dict[str, bool]] = None, **values: Optional[float]) -> "FeatureVector":
        """Clamp every component to its scale; None becomes the neutral default."""
        unknown = set(values) - set(FEATURE_BOUNDS)
        if unknown:
            raise ValueError(f"Unknown feature components: {sorted(unknown)}")
        bounded = {name: _bounded(name, values.get(name)) for name in FEATURE_BOUNDS}
        return cls(availability=dict(availability or {}), **bounded)

    def is_available(self, factor: str) -> bool:
        return self.availability.get(factor, False)

    def factor_differentials(self) -> Dict[str, float]:
        """
        Signed, home-favouring differential per ensemble factor.

        Positive values favour the home team. Injuries and fatigue are
        inverted (away - home) since a higher score is worse.
        """
        return {
            "team_form": self.home_form - self.away_form,
            "player_stats": self.home_player_advantage - self.away_player_advantage,
            "injuries": self.away_injury_impact - self.home_injury_impact,
            "travel_fatigue": self.away_fatigue - self.home_fatigue,
            "head_to_head": self.h2h_advantage - 5.0,
            "home_advantage": self.home_court_advantage - 5.0,
            "rest_differential": self.rest_advantage,
            "weather": self.weather_impact,
            "sentiment": self.home_sentiment - self.away_sentiment,
            "market": self.market_signal,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureVector":
        values = {name: data.get(name) for name in FEATURE_BOUNDS}
        return cls.build(availability=data.get("availability"), **values)
