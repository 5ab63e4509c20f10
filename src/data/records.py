"""
Pydantic models for raw entity records delivered by the data store.

The ingestion side (ESPN, odds, weather collectors) writes these records; the
prediction core only reads them. Models are lenient: unknown columns are
ignored and numeric strings are coerced, so a slightly different upstream
schema does not break feature derivation.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GameStatus(str, Enum):
    """Lifecycle status of a game."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({GameStatus.FINAL, GameStatus.COMPLETED})


class InjurySeverity(str, Enum):
    SEVERE = "severe"
    MODERATE = "moderate"
    MINOR = "minor"
    UNKNOWN = "unknown"


# Raw severity/status words seen in injury feeds, mapped to a severity tier
_SEVERITY_ALIASES: Dict[str, InjurySeverity] = {
    "severe": InjurySeverity.SEVERE,
    "out": InjurySeverity.SEVERE,
    "ir": InjurySeverity.SEVERE,
    "injured reserve": InjurySeverity.SEVERE,
    "moderate": InjurySeverity.MODERATE,
    "doubtful": InjurySeverity.MODERATE,
    "minor": InjurySeverity.MINOR,
    "questionable": InjurySeverity.MINOR,
    "day-to-day": InjurySeverity.MINOR,
    "probable": InjurySeverity.MINOR,
}


def classify_severity(value: Optional[str]) -> InjurySeverity:
    """Map a free-text severity or status to a severity tier, matching whole words."""
    text = (value or "").strip().lower()
    if text in _SEVERITY_ALIASES:
        return _SEVERITY_ALIASES[text]
    for alias, severity in _SEVERITY_ALIASES.items():
        if re.search(rf"\b{re.escape(alias)}\b", text):
            return severity
    return InjurySeverity.UNKNOWN


def _to_utc(value: Any) -> Any:
    """Accept epoch seconds, ISO strings or datetimes; return aware UTC datetimes."""
    if value is None:
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class TeamRecord(_Record):
    """A team row."""

    id: str
    name: str
    sport: str = "unknown"
    city: Optional[str] = None
    abbreviation: Optional[str] = None
    venue: Optional[str] = None
    home_field_advantage_score: Optional[float] = None


class PlayerRecord(_Record):
    """A player row; per-sport stats live in a free-form mapping."""

    id: str
    team_id: str
    name: str
    position: Optional[str] = None
    status: Optional[str] = None
    sport: Optional[str] = None
    stats: Dict[str, float] = Field(default_factory=dict)

    @field_validator("stats", mode="before")
    @classmethod
    def _drop_non_numeric(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        cleaned = {}
        for key, raw in value.items():
            try:
                cleaned[key] = float(raw)
            except (TypeError, ValueError):
                continue
        return cleaned


class GameRecord(_Record):
    """A game row; scores are present once the game has been played."""

    id: str
    sport: str
    game_date: datetime
    home_team_id: str
    away_team_id: str
    status: GameStatus = GameStatus.SCHEDULED
    home_score: Optional[float] = None
    away_score: Optional[float] = None
    venue_city: Optional[str] = None

    @field_validator("game_date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> Any:
        return _to_utc(value)

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace(" ", "_")
        return value

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_scores(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    def score_for(self, team_id: str) -> tuple[float, float]:
        """(team score, opponent score) from the perspective of team_id."""
        home = self.home_score or 0.0
        away = self.away_score or 0.0
        if team_id == self.home_team_id:
            return home, away
        return away, home


class InjuryRecord(_Record):
    """An injury report row."""

    id: Optional[str] = None
    player_id: str
    team_id: str
    severity: InjurySeverity = InjurySeverity.UNKNOWN
    status: str = "unknown"
    player_importance: Optional[str] = None
    is_active: bool = True

    @field_validator("severity", mode="before")
    @classmethod
    def _classify(cls, value: Any) -> Any:
        if isinstance(value, InjurySeverity):
            return value
        return classify_severity(value)

    @property
    def counts_as_active(self) -> bool:
        return self.is_active and self.status.lower() != "healthy"

    @property
    def is_key_player(self) -> bool:
        return (self.player_importance or "").lower() == "key"
