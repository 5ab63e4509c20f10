"""
Weighted ensemble prediction.

The engine takes a matchup, gathers feature signals, and returns an explicit
result: PredictionOk, PredictionFallback or PredictionError.
"""
from src.prediction.engine import Matchup, PredictionEngine
from src.prediction.result import (
    PredictionError,
    PredictionFallback,
    PredictionOk,
    PredictionResult,
)
from src.prediction.sport_config import SPORT_CONFIGS, SportConfig, get_sport_config
from src.prediction.weights import (
    DEFAULT_WEIGHTS,
    FACTORS,
    WeightSet,
    WeightSetError,
    normalize_bounded,
)

__all__ = [
    "Matchup",
    "PredictionEngine",
    "PredictionError",
    "PredictionFallback",
    "PredictionOk",
    "PredictionResult",
    "SPORT_CONFIGS",
    "SportConfig",
    "get_sport_config",
    "DEFAULT_WEIGHTS",
    "FACTORS",
    "WeightSet",
    "WeightSetError",
    "normalize_bounded",
]
