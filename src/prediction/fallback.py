"""
Minimal statistical prediction used when the feature pipeline fails.

Fallback records are stored and validated like any other prediction, but the
tuner ignores them since they carry no factor signal.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import numpy as np

from src.prediction.sport_config import SportConfig
from src.tracking.records import PredictionRecord, generate_prediction_id

FALLBACK_MODEL_VERSION = "fallback-statistical-1.0"
FALLBACK_CONFIDENCE_RANGE = (65, 85)  # integers, upper bound exclusive
FALLBACK_SPREAD_RANGE = (-5.0, 5.0)


def build_fallback_record(
    matchup,
    config: SportConfig,
    reason: str,
    weights_version: str,
    rng: np.random.Generator,
    created_at: Optional[datetime] = None,
) -> PredictionRecord:
    created_at = created_at or datetime.now(timezone.utc)
    confidence = int(rng.integers(*FALLBACK_CONFIDENCE_RANGE))
    spread = float(rng.uniform(*FALLBACK_SPREAD_RANGE))

    midpoint = (config.home_base_score + config.away_base_score) / 2.0
    home_score = max(0.0, midpoint + spread / 2.0)
    away_score = max(0.0, midpoint - spread / 2.0)
    home_prob = round(float(np.clip(0.5 + spread / 20.0, 0.25, 0.75)), 3)
    home_wins = home_prob >= 0.5

    return PredictionRecord(
        prediction_id=generate_prediction_id(matchup.game_id, created_at, weights_version),
        game_id=matchup.game_id,
        sport=matchup.sport,
        home_team_id=matchup.home_team_id,
        away_team_id=matchup.away_team_id,
        created_at=created_at,
        predicted_winner=matchup.home_team_id if home_wins else matchup.away_team_id,
        predicted_side="home" if home_wins else "away",
        home_win_probability=home_prob,
        away_win_probability=round(1.0 - home_prob, 3),
        confidence=float(confidence),
        predicted_home_score=home_score,
        predicted_away_score=away_score,
        predicted_spread=spread,
        predicted_total=home_score + away_score,
        model_version=FALLBACK_MODEL_VERSION,
        weights_version=weights_version,
        is_fallback=True,
        fallback_reason=reason,
        game_date=matchup.game_date,
    )
