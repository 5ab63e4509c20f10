"""
Weight tuning from validated prediction history.

For every factor, measure how often the prediction was right on the samples
where that factor was decisive, turn those accuracies into ideal shares, and
move the current weights part of the way there. The proposal is saved as a
new weight set version; it only takes effect once adopted.

Factor accuracy is recomputed from each record's stored feature vector, so a
tuning pass never needs the data store.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from src.config import TuningSettings
from src.data.store import StoreError
from src.features.vector import FeatureVector
from src.prediction.weights import FACTORS, WeightSet, normalize_bounded
from src.tracking.records import PredictionRecord
from src.tracking.run_log import RunLog, WEIGHT_TUNING
from src.tracking.store import PredictionStore
from src.tracking.weight_store import WeightStore
from src.tuning.recommendations import build_recommendations
from src.utils.logging import get_logger

logger = get_logger(__name__)

WEIGHT_TUNING_ERROR = "weight_tuning_error"


@dataclass
class TuningResult:
    status: str  # tuned | insufficient_data | error
    success: bool
    predictions_analyzed: int
    minimum_required: int
    factor_accuracy: Dict[str, Dict[str, float]] = field(default_factory=dict)
    current_weights: Dict[str, float] = field(default_factory=dict)
    proposed_weights: Dict[str, float] = field(default_factory=dict)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)
    current_version: Optional[str] = None
    proposed_version: Optional[str] = None
    duration_ms: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def factor_frame(records: Iterable[PredictionRecord]) -> pd.DataFrame:
    """One row per (prediction, factor) with the signed differential and whether the prediction was right."""
    rows = []
    for record in records:
        if record.outcome is None:
            continue
        diffs = FeatureVector.from_dict(record.features).factor_differentials()
        for factor, diff in diffs.items():
            rows.append({
                "prediction_id": record.prediction_id,
                "factor": factor,
                "diff": diff,
                "was_correct": bool(record.outcome.was_correct),
            })
    return pd.DataFrame(rows, columns=["prediction_id", "factor", "diff", "was_correct"])


def compute_factor_accuracy(
    records: Iterable[PredictionRecord],
    decisive_threshold: float = 0.5,
) -> Dict[str, Dict[str, float]]:
    """
    Prediction accuracy on the samples where each factor was decisive.

    A sample is decisive for a factor when |diff| >= decisive_threshold; it
    counts as correct when the prediction itself was correct (a tie never is).
    Factors with no decisive samples report total=0.
    """
    df = factor_frame(records)
    result = {f: {"total": 0, "correct": 0, "accuracy_pct": 0.0} for f in FACTORS}
    if df.empty:
        return result

    decisive = df[df["diff"].abs() >= decisive_threshold]
    grouped = decisive.groupby("factor")["was_correct"].agg(["size", "sum"])
    for factor, row in grouped.iterrows():
        total = int(row["size"])
        correct = int(row["sum"])
        result[factor] = {
            "total": total,
            "correct": correct,
            "accuracy_pct": round(100.0 * correct / total, 2),
        }
    return result


def propose_weights(
    current: Dict[str, float],
    factor_accuracy: Dict[str, Dict[str, float]],
    damping: float = 0.3,
    weight_min: float = 0.02,
    weight_max: float = 0.30,
) -> Dict[str, float]:
    """
    Damped move from the current weights toward accuracy-proportional shares.

    Measured factors share the mass not held by unmeasured ones in proportion
    to their accuracy (uniformly when every measured accuracy is zero);
    unmeasured factors keep their current weight as the target.
    """
    measured = [f for f in FACTORS if factor_accuracy.get(f, {}).get("total", 0) > 0]
    unmeasured_mass = sum(current[f] for f in FACTORS if f not in measured)
    measured_mass = 1.0 - unmeasured_mass
    accuracy_sum = sum(factor_accuracy[f]["accuracy_pct"] for f in measured)

    ideal = dict(current)
    for factor in measured:
        if accuracy_sum > 0:
            share = factor_accuracy[factor]["accuracy_pct"] / accuracy_sum
        else:
            share = 1.0 / len(measured)
        ideal[factor] = share * measured_mass

    nudged = {f: current[f] + damping * (ideal[f] - current[f]) for f in FACTORS}
    return normalize_bounded(nudged, weight_min, weight_max)


class WeightTuner:
    """
    Proposes new factor weights from validated predictions.

    Usage:
        tuner = WeightTuner(prediction_store, weight_store, run_log)
        result = tuner.tune_weights()
        if result.status == "tuned":
            weight_store.adopt(result.proposed_version)
    """

    def __init__(
        self,
        prediction_store: PredictionStore,
        weight_store: Optional[WeightStore] = None,
        run_log: Optional[RunLog] = None,
        tuning_settings: Optional[TuningSettings] = None,
    ):
        self.prediction_store = prediction_store
        self.weight_store = weight_store
        self.run_log = run_log
        self.settings = tuning_settings or TuningSettings()

    def _samples(self, lookback_days: int, as_of: datetime) -> List[PredictionRecord]:
        cutoff = as_of - timedelta(days=lookback_days)
        return [
            r for r in self.prediction_store.list_validated(include_fallback=False)
            if r.created_at >= cutoff and r.features
        ]

    def tune_weights(
        self,
        lookback_days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> TuningResult:
        lookback_days = lookback_days or self.settings.lookback_days
        as_of = as_of or datetime.now(timezone.utc)
        started = time.perf_counter()
        minimum = self.settings.min_samples

        try:
            current = self.weight_store.current() if self.weight_store else WeightSet.default()
            samples = self._samples(lookback_days, as_of)
            logger.info(f"Weight tuning: analyzing {len(samples)} validated predictions from the last {lookback_days} days")

            if len(samples) < minimum:
                logger.info(f"Not enough data yet ({len(samples)} < {minimum}); weights unchanged")
                return TuningResult(
                    status="insufficient_data",
                    success=True,
                    predictions_analyzed=len(samples),
                    minimum_required=minimum,
                    current_weights=dict(current.weights),
                    current_version=current.version,
                    duration_ms=int((time.perf_counter() - started) * 1000),
                )

            accuracy = compute_factor_accuracy(samples, self.settings.decisive_threshold)
            proposed = propose_weights(
                dict(current.weights),
                accuracy,
                damping=self.settings.damping,
                weight_min=self.settings.weight_min,
                weight_max=self.settings.weight_max,
            )
            measured = {f: stats for f, stats in accuracy.items() if stats["total"] > 0}
            recommendations = [r.to_dict() for r in build_recommendations(measured, current.weights, proposed)]

            proposal = WeightSet(
                weights=proposed,
                version=WeightStore.new_version(as_of) if self.weight_store else "proposed",
                source="tuner",
                parent_version=current.version,
                weight_min=self.settings.weight_min,
                weight_max=self.settings.weight_max,
                metadata={"predictions_analyzed": len(samples), "lookback_days": lookback_days},
            )
            if self.weight_store is not None:
                self.weight_store.save(proposal)

            result = TuningResult(
                status="tuned",
                success=True,
                predictions_analyzed=len(samples),
                minimum_required=minimum,
                factor_accuracy=accuracy,
                current_weights=dict(current.weights),
                proposed_weights=proposed,
                recommendations=recommendations,
                current_version=current.version,
                proposed_version=proposal.version,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
        except StoreError as e:
            logger.error(f"Weight tuning failed: {e}")
            result = TuningResult(
                status="error",
                success=False,
                predictions_analyzed=0,
                minimum_required=minimum,
                duration_ms=int((time.perf_counter() - started) * 1000),
                error=f"{type(e).__name__}: {e}",
            )
            self._log_run(WEIGHT_TUNING_ERROR, f"Weight tuning failed: {e}", result)
            return result

        logger.info(f"Proposed weight set {result.proposed_version} from {result.predictions_analyzed} predictions")
        self._log_run(
            WEIGHT_TUNING,
            f"Analyzed {result.predictions_analyzed} predictions and proposed weights {result.proposed_version}",
            result,
        )
        return result

    def _log_run(self, log_type: str, message: str, result: TuningResult) -> None:
        if self.run_log is None:
            return
        try:
            self.run_log.append(log_type, message, result.to_dict())
        except StoreError as e:
            logger.error(f"Could not write run log entry: {e}")
