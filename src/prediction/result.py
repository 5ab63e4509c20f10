"""
Outcome of one generate_prediction call.

The engine never signals fallback by raising. Callers match on the type:

    result = await engine.generate_prediction(matchup)
    if isinstance(result, PredictionError):
        ...
    else:
        store.insert(result.record)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from src.tracking.records import PredictionRecord


@dataclass(frozen=True)
class PredictionOk:
    record: PredictionRecord
    status: Literal["ok"] = "ok"


@dataclass(frozen=True)
class PredictionFallback:
    record: PredictionRecord
    reason: str
    status: Literal["fallback"] = "fallback"


@dataclass(frozen=True)
class PredictionError:
    kind: str  # "invalid_input"
    message: str
    status: Literal["error"] = "error"


PredictionResult = Union[PredictionOk, PredictionFallback, PredictionError]
