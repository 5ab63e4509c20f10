"""Human-readable per-factor recommendations from a tuning pass."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping

EXCELLENT_ACCURACY = 70.0
GOOD_ACCURACY = 55.0
SIGNIFICANT_CHANGE_PCT = 10.0


@dataclass(frozen=True)
class Recommendation:
    factor: str
    status: str  # excellent | good | needs_improvement
    accuracy: float  # percent
    samples: int
    weight_change_pct: float
    message: str
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def recommend(
    factor: str,
    accuracy_pct: float,
    samples: int,
    current_weight: float,
    proposed_weight: float,
) -> Recommendation:
    change = 0.0
    if current_weight > 0:
        change = round((proposed_weight - current_weight) / current_weight * 100.0, 1)

    if accuracy_pct >= EXCELLENT_ACCURACY:
        status = "excellent"
        message = f"{factor} performing well ({accuracy_pct:.1f}% accuracy)"
        action = "Increase weight significantly" if change > SIGNIFICANT_CHANGE_PCT else "Maintain or slightly increase"
    elif accuracy_pct >= GOOD_ACCURACY:
        status = "good"
        message = f"{factor} performing adequately ({accuracy_pct:.1f}% accuracy)"
        action = "Maintain current weight"
    else:
        status = "needs_improvement"
        message = f"{factor} underperforming ({accuracy_pct:.1f}% accuracy)"
        action = "Decrease weight significantly" if change < -SIGNIFICANT_CHANGE_PCT else "Consider improving data quality"

    return Recommendation(factor, status, round(accuracy_pct, 1), samples, change, message, action)


def build_recommendations(
    factor_accuracy: Mapping[str, Mapping[str, float]],
    current: Mapping[str, float],
    proposed: Mapping[str, float],
) -> List[Recommendation]:
    """One recommendation per factor that had decisive samples."""
    return [
        recommend(factor, stats["accuracy_pct"], int(stats["total"]), current[factor], proposed[factor])
        for factor, stats in factor_accuracy.items()
        if stats["total"] > 0
    ]
