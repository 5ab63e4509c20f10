"""
Prediction Tracking Module

Persists predictions at generation time, outcome annotations written by the
validator, weight set versions and the job run log.
"""

from .records import OutcomeAnnotation, PredictionRecord, TIE
from .store import (
    AlreadyValidatedError,
    InMemoryPredictionStore,
    JsonlPredictionStore,
    PredictionNotFoundError,
    PredictionStore,
)
from .run_log import RunLog, RunLogEntry
from .weight_store import WeightStore

__all__ = [
    "OutcomeAnnotation",
    "PredictionRecord",
    "TIE",
    "AlreadyValidatedError",
    "InMemoryPredictionStore",
    "JsonlPredictionStore",
    "PredictionNotFoundError",
    "PredictionStore",
    "RunLog",
    "RunLogEntry",
    "WeightStore",
]
