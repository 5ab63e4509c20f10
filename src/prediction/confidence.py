"""
Confidence calculation for ensemble predictions.

Confidence blends two things: how much of the feature vector came from real
data (per-factor breakdown) and how far the win probability sits from a
coin flip. The result is kept inside [60, 95]; the ensemble never claims
certainty and never reports below the floor a neutral matchup earns.
"""
from typing import Dict

import numpy as np

from src.features.vector import FeatureVector

MIN_CONFIDENCE = 60.0
MAX_CONFIDENCE = 95.0

DATA_QUALITY_SHARE = 0.6
PROBABILITY_SHARE = 0.4

# breakdown key -> (availability factor, score when available, score when defaulted)
BREAKDOWN_SCORES = {
    "player_stats": ("player_stats", 85.0, 60.0),
    "injuries": ("injuries", 90.0, 70.0),
    "travel_fatigue": ("travel_fatigue", 80.0, 65.0),
    "team_form": ("team_form", 85.0, 70.0),
    "head_to_head": ("head_to_head", 75.0, 50.0),
    "weather": ("weather", 70.0, 60.0),
    "home_advantage": ("home_advantage", 85.0, 85.0),
    "rest_differential": ("rest_differential", 80.0, 65.0),
}


def confidence_breakdown(vector: FeatureVector) -> Dict[str, float]:
    """Per-factor data-availability confidence (0-100)."""
    return {
        key: available if vector.is_available(factor) else defaulted
        for key, (factor, available, defaulted) in BREAKDOWN_SCORES.items()
    }


def overall_confidence(
    breakdown: Dict[str, float],
    home_win_probability: float,
    min_confidence: float = MIN_CONFIDENCE,
    max_confidence: float = MAX_CONFIDENCE,
) -> float:
    """
    Combine data quality with probability strength.

    Args:
        breakdown: Output of confidence_breakdown()
        home_win_probability: Home win probability (0-1)

    Returns:
        Confidence between min_confidence and max_confidence, rounded to 0.1
    """
    data_quality = float(np.mean(list(breakdown.values()))) if breakdown else min_confidence
    # Map |p - 0.5| from [0, 0.5] to [0, 100]
    probability_strength = abs(home_win_probability - 0.5) * 2.0 * 100.0
    raw = DATA_QUALITY_SHARE * data_quality + PROBABILITY_SHARE * probability_strength
    return round(float(np.clip(raw, min_confidence, max_confidence)), 1)
