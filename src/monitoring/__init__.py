"""
Prediction monitoring.

- Outcome validation of stored predictions
- Rolling accuracy statistics
"""

from src.monitoring.accuracy import AccuracyStats, rolling_accuracy
from src.monitoring.validator import (
    PredictionValidator,
    ValidationSummary,
    compute_outcome,
)

__all__ = [
    "AccuracyStats",
    "rolling_accuracy",
    "PredictionValidator",
    "ValidationSummary",
    "compute_outcome",
]
