"""
Rolling accuracy statistics over validated predictions.

Recomputed from scratch on every validation run, never incremented, so a
repeated run over the same games reports exactly the same numbers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable

import pandas as pd

from src.tracking.records import PredictionRecord


@dataclass
class AccuracyStats:
    """Accuracy of validated predictions in a trailing window."""

    window_days: int
    total: int = 0
    correct: int = 0
    avg_confidence: float = 0.0
    avg_error: float = 0.0
    fallback_count: int = 0
    by_sport: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def incorrect(self) -> int:
        return self.total - self.correct

    @property
    def accuracy_pct(self) -> float:
        if self.total == 0:
            return 0.0
        return round(100.0 * self.correct / self.total, 2)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["incorrect"] = self.incorrect
        data["accuracy_pct"] = self.accuracy_pct
        return data


def predictions_frame(records: Iterable[PredictionRecord]) -> pd.DataFrame:
    """One row per validated prediction."""
    rows = [
        {
            "prediction_id": r.prediction_id,
            "sport": r.sport,
            "confidence": r.confidence,
            "is_fallback": r.is_fallback,
            "was_correct": r.outcome.was_correct,
            "margin_of_error": r.outcome.margin_of_error,
            "validated_at": r.outcome.validated_at,
        }
        for r in records
        if r.outcome is not None
    ]
    columns = ["prediction_id", "sport", "confidence", "is_fallback", "was_correct", "margin_of_error", "validated_at"]
    return pd.DataFrame(rows, columns=columns)


def rolling_accuracy(
    records: Iterable[PredictionRecord],
    as_of: datetime,
    window_days: int = 7,
) -> AccuracyStats:
    df = predictions_frame(records)
    stats = AccuracyStats(window_days=window_days)
    if df.empty:
        return stats

    df["validated_at"] = pd.to_datetime(df["validated_at"], utc=True)
    cutoff = pd.Timestamp(as_of - timedelta(days=window_days))
    if cutoff.tzinfo is None:
        cutoff = cutoff.tz_localize("UTC")
    window = df[df["validated_at"] >= cutoff]
    if window.empty:
        return stats

    stats.total = int(len(window))
    stats.correct = int(window["was_correct"].sum())
    stats.avg_confidence = round(float(window["confidence"].mean()), 2)
    stats.avg_error = round(float(window["margin_of_error"].mean()), 2)
    stats.fallback_count = int(window["is_fallback"].sum())

    grouped = window.groupby("sport").agg(
        total=("was_correct", "size"),
        correct=("was_correct", "sum"),
        avg_error=("margin_of_error", "mean"),
    )
    stats.by_sport = {
        sport: {
            "total": int(row["total"]),
            "correct": int(row["correct"]),
            "accuracy_pct": round(100.0 * row["correct"] / row["total"], 2),
            "avg_error": round(float(row["avg_error"]), 2),
        }
        for sport, row in grouped.iterrows()
    }
    return stats
