"""
Versioned factor weight sets.

A weight set maps every ensemble factor to a weight; weights sum to 1.0 and
each stays inside [weight_min, weight_max]. The engine receives a weight set
explicitly, so a tuner proposal has no effect until someone adopts it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import numpy as np

FACTORS = (
    "team_form",
    "player_stats",
    "injuries",
    "travel_fatigue",
    "head_to_head",
    "home_advantage",
    "rest_differential",
    "weather",
    "sentiment",
    "market",
)

DEFAULT_WEIGHTS: Dict[str, float] = {
    "team_form": 0.15,
    "player_stats": 0.20,
    "injuries": 0.18,
    "travel_fatigue": 0.12,
    "head_to_head": 0.10,
    "home_advantage": 0.08,
    "rest_differential": 0.07,
    "weather": 0.03,
    "sentiment": 0.05,
    "market": 0.02,
}

WEIGHT_MIN = 0.02
WEIGHT_MAX = 0.30
SUM_TOLERANCE = 1e-6
BOUND_TOLERANCE = 1e-9

DEFAULT_VERSION = "default"


class WeightSetError(ValueError):
    """Raised when a weight mapping violates the factor, bound or sum rules."""
    pass


def check_weights(
    weights: Mapping[str, float],
    weight_min: float = WEIGHT_MIN,
    weight_max: float = WEIGHT_MAX,
) -> None:
    missing = set(FACTORS) - set(weights)
    unknown = set(weights) - set(FACTORS)
    if missing or unknown:
        raise WeightSetError(f"Weight set factors mismatch: missing={sorted(missing)}, unknown={sorted(unknown)}")

    n = len(FACTORS)
    if n * weight_min > 1.0 + SUM_TOLERANCE or n * weight_max < 1.0 - SUM_TOLERANCE:
        raise WeightSetError(f"Bounds [{weight_min}, {weight_max}] cannot hold {n} weights summing to 1.0")

    for factor, value in weights.items():
        if not (weight_min - BOUND_TOLERANCE <= value <= weight_max + BOUND_TOLERANCE):
            raise WeightSetError(f"Weight for {factor}={value:.4f} outside [{weight_min}, {weight_max}]")

    total = sum(weights.values())
    if abs(total - 1.0) > SUM_TOLERANCE:
        raise WeightSetError(f"Weights sum to {total:.6f}, expected 1.0")


def normalize_bounded(
    weights: Mapping[str, float],
    weight_min: float = WEIGHT_MIN,
    weight_max: float = WEIGHT_MAX,
) -> Dict[str, float]:
    """
    Rescale weights to sum to 1.0 while keeping each inside [weight_min, weight_max].

    Weights are clipped to the bounds, then the free weights are rescaled to
    the mass left over by the ones pinned at a bound. Any weight the rescale
    pushes past a bound is pinned and the loop repeats; a pass only ever
    pushes in one direction, so it settles in at most len(weights) passes.
    """
    names = list(weights)
    values = np.clip(np.array([float(weights[n]) for n in names]), weight_min, weight_max)
    pinned = np.zeros(len(names), dtype=bool)

    for _ in range(len(names) + 1):
        free = ~pinned
        if not free.any():
            break
        remaining = 1.0 - values[pinned].sum()
        free_total = values[free].sum()
        if free_total <= 0:
            values[free] = remaining / free.sum()
        else:
            values[free] = values[free] * (remaining / free_total)

        over = free & (values > weight_max)
        under = free & (values < weight_min)
        if not over.any() and not under.any():
            break
        values[over] = weight_max
        values[under] = weight_min
        pinned |= over | under

    values = np.clip(values, weight_min, weight_max)
    return {name: float(value) for name, value in zip(names, values)}


@dataclass(frozen=True)
class WeightSet:
    """Named, versioned mapping of factor -> weight."""

    weights: Dict[str, float]
    version: str = DEFAULT_VERSION
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "default"  # default | tuner | manual
    parent_version: Optional[str] = None
    weight_min: float = WEIGHT_MIN
    weight_max: float = WEIGHT_MAX
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        check_weights(self.weights, self.weight_min, self.weight_max)

    @classmethod
    def default(cls) -> "WeightSet":
        return cls(weights=dict(DEFAULT_WEIGHTS), created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

    def __getitem__(self, factor: str) -> float:
        return self.weights[factor]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "weights": dict(self.weights),
            "created_at": self.created_at.isoformat(),
            "source": self.source,
            "parent_version": self.parent_version,
            "weight_min": self.weight_min,
            "weight_max": self.weight_max,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeightSet":
        created_at = datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None
        kwargs: Dict[str, Any] = {
            "weights": {k: float(v) for k, v in data["weights"].items()},
            "version": data.get("version", DEFAULT_VERSION),
            "source": data.get("source", "default"),
            "parent_version": data.get("parent_version"),
            "weight_min": float(data.get("weight_min", WEIGHT_MIN)),
            "weight_max": float(data.get("weight_max", WEIGHT_MAX)),
            "metadata": data.get("metadata") or {},
        }
        if created_at is not None:
            kwargs["created_at"] = created_at
        return cls(**kwargs)
