"""Feature derivation for matchup predictions."""

from src.features.adapter import FeatureAdapter, InvalidIdentifierError, validate_identifier
from src.features.snapshots import (
    FatigueSnapshot,
    HeadToHeadSummary,
    InjuryImpact,
    PlayerMatchup,
    TeamFormSnapshot,
)
from src.features.vector import ContextSignals, FeatureVector

__all__ = [
    "FeatureAdapter",
    "InvalidIdentifierError",
    "validate_identifier",
    "FatigueSnapshot",
    "HeadToHeadSummary",
    "InjuryImpact",
    "PlayerMatchup",
    "TeamFormSnapshot",
    "ContextSignals",
    "FeatureVector",
]
