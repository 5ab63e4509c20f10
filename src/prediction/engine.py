"""
Weighted ensemble prediction engine.

Pipeline for one matchup:
    1. Fan out every feature read concurrently (asyncio.gather) and join.
    2. Build a bounded FeatureVector (neutral defaults for missing data).
    3. Differential starts at the sport's base (50); each factor adds
       signed_diff * weight * scale. The total is clamped to [0, 100] only
       after all additions and read as the home win probability.
    4. Project scores from the sport baselines, then confidence, key factors,
       variance and upset risk.

Malformed identifiers return PredictionError(kind="invalid_input"). Any other
failure while gathering features returns a PredictionFallback carrying a
minimal statistical record, so a slate run never aborts on one game.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

import numpy as np

from src.config import resolve_model_version
from src.data.records import GameRecord
from src.features.adapter import FeatureAdapter, InvalidIdentifierError, validate_identifier
from src.features.vector import ContextSignals, FeatureVector
from src.prediction.confidence import confidence_breakdown, overall_confidence
from src.prediction.explain import key_factors, upset_probability, variance_score
from src.prediction.fallback import build_fallback_record
from src.prediction.result import PredictionError, PredictionFallback, PredictionOk, PredictionResult
from src.prediction.sport_config import SportConfig, get_sport_config
from src.prediction.weights import FACTORS, WeightSet
from src.tracking.records import PredictionRecord, generate_prediction_id
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Matchup:
    """One game to predict."""

    game_id: str
    sport: str
    home_team_id: str
    away_team_id: str
    game_date: datetime
    venue_city: Optional[str] = None
    context: ContextSignals = field(default_factory=ContextSignals)

    @classmethod
    def from_game(cls, game: GameRecord, context: Optional[ContextSignals] = None) -> "Matchup":
        return cls(
            game_id=game.id,
            sport=game.sport,
            home_team_id=game.home_team_id,
            away_team_id=game.away_team_id,
            game_date=game.game_date,
            venue_city=game.venue_city,
            context=context or ContextSignals(),
        )


class PredictionEngine:
    """
    Combines adapter signals for a matchup into a PredictionRecord.

    Weights are passed in explicitly; the engine never reads or mutates a
    global weight set. Pass a seeded rng to make fallback records reproducible.
    """

    def __init__(
        self,
        adapter: FeatureAdapter,
        weights: Optional[WeightSet] = None,
        sport_configs: Optional[Dict[str, SportConfig]] = None,
        rng: Optional[np.random.Generator] = None,
        model_version: Optional[str] = None,
    ):
        self.adapter = adapter
        self.weights = weights or WeightSet.default()
        self.sport_configs = sport_configs
        self.rng = rng if rng is not None else np.random.default_rng()
        self.model_version = model_version or resolve_model_version()

    async def generate_prediction(self, matchup: Matchup) -> PredictionResult:
        try:
            validate_identifier(matchup.game_id, "game_id")
            validate_identifier(matchup.home_team_id, "home_team_id")
            validate_identifier(matchup.away_team_id, "away_team_id")
        except InvalidIdentifierError as e:
            logger.warning(f"Rejected matchup: {e}")
            return PredictionError(kind="invalid_input", message=str(e))

        config = get_sport_config(matchup.sport, self.sport_configs)

        try:
            vector = await self.build_features(matchup, config)
        except InvalidIdentifierError as e:
            return PredictionError(kind="invalid_input", message=str(e))
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning(f"Feature pipeline failed for game {matchup.game_id}, using fallback ({reason})")
            record = build_fallback_record(
                matchup,
                config,
                reason=reason,
                weights_version=self.weights.version,
                rng=self.rng,
            )
            return PredictionFallback(record=record, reason=reason)

        record = self.combine(matchup, vector, config)
        logger.info(
            f"Predicted {matchup.game_id}: {record.predicted_winner} "
            f"(home {record.home_win_probability:.1%}, confidence {record.confidence})"
        )
        return PredictionOk(record=record)

    # =========================================================================
    # FEATURES
    # =========================================================================

    async def build_features(self, matchup: Matchup, config: SportConfig) -> FeatureVector:
        as_of = matchup.game_date
        home, away = matchup.home_team_id, matchup.away_team_id

        (
            home_form,
            away_form,
            home_fatigue,
            away_fatigue,
            h2h,
            (home_injuries, away_injuries),
            players,
        ) = await asyncio.gather(
            self.adapter.team_form(home, as_of),
            self.adapter.team_form(away, as_of),
            self.adapter.fatigue(home, as_of, matchup.venue_city),
            self.adapter.fatigue(away, as_of, matchup.venue_city),
            self.adapter.head_to_head(home, away, as_of),
            self.adapter.injury_comparison(home, away),
            self.adapter.player_matchup(home, away, matchup.sport),
        )
        home_court = await self.adapter.home_advantage(home, config.home_court_base, form=home_form)

        context = matchup.context
        fatigue_known = not (home_fatigue.is_default or away_fatigue.is_default)
        availability = {
            "team_form": not (home_form.is_default or away_form.is_default),
            "player_stats": not players.is_default,
            "injuries": not (home_injuries.is_default or away_injuries.is_default),
            "travel_fatigue": fatigue_known,
            "rest_differential": fatigue_known,
            "head_to_head": not h2h.is_default,
            "home_advantage": True,
            "weather": context.weather_impact is not None,
            "sentiment": context.home_sentiment is not None and context.away_sentiment is not None,
            "market": context.market_signal is not None,
        }

        return FeatureVector.build(
            availability=availability,
            home_form=home_form.form_score,
            away_form=away_form.form_score,
            home_fatigue=home_fatigue.fatigue_score,
            away_fatigue=away_fatigue.fatigue_score,
            home_injury_impact=home_injuries.impact_score,
            away_injury_impact=away_injuries.impact_score,
            home_player_advantage=players.home_advantage,
            away_player_advantage=players.away_advantage,
            h2h_advantage=h2h.h2h_score,
            home_court_advantage=home_court,
            rest_advantage=home_fatigue.days_rest - away_fatigue.days_rest,
            weather_impact=context.weather_impact,
            home_sentiment=context.home_sentiment,
            away_sentiment=context.away_sentiment,
            market_signal=context.market_signal,
        )

    # =========================================================================
    # COMBINE
    # =========================================================================

    def differential(self, vector: FeatureVector, config: SportConfig) -> float:
        """Home advantage on [0, 100]; 50 is a coin flip."""
        diffs = vector.factor_differentials()
        total = config.base_differential
        for factor in FACTORS:
            total += diffs[factor] * self.weights[factor] * config.scale_for(factor)
        return float(np.clip(total, 0.0, 100.0))

    @staticmethod
    def project_scores(vector: FeatureVector, home_prob: float, config: SportConfig) -> tuple[float, float]:
        variance = config.score_variance
        shift = (home_prob - 0.5) * variance * 2.0

        home = config.home_base_score + shift
        away = config.away_base_score - shift

        home += (vector.home_form - 5.0) * variance / 5.0
        away += (vector.away_form - 5.0) * variance / 5.0

        home -= vector.home_injury_impact * variance / 10.0
        away -= vector.away_injury_impact * variance / 10.0

        home -= vector.home_fatigue * variance / 10.0
        away -= vector.away_fatigue * variance / 10.0

        return max(0.0, home), max(0.0, away)

    def combine(
        self,
        matchup: Matchup,
        vector: FeatureVector,
        config: SportConfig,
        created_at: Optional[datetime] = None,
    ) -> PredictionRecord:
        created_at = created_at or datetime.now(timezone.utc)

        home_prob = self.differential(vector, config) / 100.0
        away_prob = 1.0 - home_prob
        home_score, away_score = self.project_scores(vector, home_prob, config)

        breakdown = confidence_breakdown(vector)
        variance = variance_score(vector)
        home_wins = home_prob >= 0.5

        return PredictionRecord(
            prediction_id=generate_prediction_id(matchup.game_id, created_at, self.weights.version),
            game_id=matchup.game_id,
            sport=matchup.sport,
            home_team_id=matchup.home_team_id,
            away_team_id=matchup.away_team_id,
            created_at=created_at,
            predicted_winner=matchup.home_team_id if home_wins else matchup.away_team_id,
            predicted_side="home" if home_wins else "away",
            home_win_probability=round(home_prob, 4),
            away_win_probability=round(away_prob, 4),
            confidence=overall_confidence(breakdown, home_prob),
            predicted_home_score=round(home_score, 1),
            predicted_away_score=round(away_score, 1),
            predicted_spread=round(home_score - away_score, 1),
            predicted_total=round(home_score + away_score, 1),
            confidence_breakdown=breakdown,
            key_factors=[k.to_dict() for k in key_factors(vector, self.weights)],
            upset_probability=upset_probability(home_prob * 100.0, away_prob * 100.0, variance),
            variance_score=variance,
            features=vector.to_dict(),
            model_version=self.model_version,
            weights_version=self.weights.version,
            game_date=matchup.game_date,
        )
