"""Factor weight tuning from validated predictions."""

from src.tuning.recommendations import Recommendation, build_recommendations
from src.tuning.weight_tuner import (
    TuningResult,
    WeightTuner,
    compute_factor_accuracy,
    propose_weights,
)

__all__ = [
    "Recommendation",
    "build_recommendations",
    "TuningResult",
    "WeightTuner",
    "compute_factor_accuracy",
    "propose_weights",
]
