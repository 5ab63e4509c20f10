"""
Prediction records and their outcome annotation.

A PredictionRecord is written once, when the engine finishes a matchup, and
its core fields never change afterwards. The only later write is the
OutcomeAnnotation attached by the validator, exactly once.
"""
from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

TIE = "tie"


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def generate_prediction_id(game_id: str, created_at: datetime, weights_version: str) -> str:
    """Unique ID for one (game, run)."""
    key = f"{game_id}|{created_at.isoformat()}|{weights_version}"
    return hashlib.sha256(key.encode()).hexdigest()[:16]


@dataclass(frozen=True)
class OutcomeAnnotation:
    """Actual result of the game, attached by the validator."""

    actual_outcome: str  # winning team id or "tie"
    was_correct: bool
    margin_of_error: float
    validated_at: datetime
    actual_home_score: float
    actual_away_score: float

    @property
    def is_tie(self) -> bool:
        return self.actual_outcome == TIE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["validated_at"] = _iso(self.validated_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutcomeAnnotation":
        return cls(
            actual_outcome=str(data["actual_outcome"]),
            was_correct=bool(data["was_correct"]),
            margin_of_error=float(data["margin_of_error"]),
            validated_at=_parse_dt(data["validated_at"]),
            actual_home_score=float(data["actual_home_score"]),
            actual_away_score=float(data["actual_away_score"]),
        )


@dataclass(frozen=True)
class PredictionRecord:
    """A single game prediction as produced by one engine run."""

    # Identification
    prediction_id: str
    game_id: str
    sport: str
    home_team_id: str
    away_team_id: str
    created_at: datetime

    # Forecast
    predicted_winner: str  # team id
    predicted_side: Literal["home", "away"]
    home_win_probability: float  # 0-1
    away_win_probability: float
    confidence: float  # 0-100
    predicted_home_score: float
    predicted_away_score: float
    predicted_spread: float  # home - away
    predicted_total: float

    # Explainability
    confidence_breakdown: Dict[str, float] = field(default_factory=dict)
    key_factors: List[Dict[str, Any]] = field(default_factory=list)
    upset_probability: float = 0.0
    variance_score: float = 0.0
    features: Dict[str, Any] = field(default_factory=dict)

    # Provenance
    model_version: str = "unknown"
    weights_version: str = "default"
    is_fallback: bool = False
    fallback_reason: Optional[str] = None
    game_date: Optional[datetime] = None

    # Filled by the validator, exactly once
    outcome: Optional[OutcomeAnnotation] = None

    @property
    def is_validated(self) -> bool:
        return self.outcome is not None

    @property
    def validated_at(self) -> Optional[datetime]:
        return self.outcome.validated_at if self.outcome else None

    def with_outcome(self, outcome: OutcomeAnnotation) -> "PredictionRecord":
        return replace(self, outcome=outcome)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        data["game_date"] = _iso(self.game_date)
        data["outcome"] = self.outcome.to_dict() if self.outcome else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PredictionRecord":
        data = dict(data)
        data["created_at"] = _parse_dt(data["created_at"])
        data["game_date"] = _parse_dt(data.get("game_date"))
        outcome = data.get("outcome")
        data["outcome"] = OutcomeAnnotation.from_dict(outcome) if outcome else None
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})
