"""
Raw entity records and the data-store read surface.

The data store is an external collaborator; this package defines the record
shapes the prediction core reads and an in-memory implementation.
"""
from src.data.records import (
    GameRecord,
    GameStatus,
    InjuryRecord,
    InjurySeverity,
    PlayerRecord,
    TeamRecord,
    TERMINAL_STATUSES,
    classify_severity,
)
from src.data.store import (
    DataStore,
    InMemoryDataStore,
    StoreError,
    StoreUnavailableError,
)

__all__ = [
    "GameRecord",
    "GameStatus",
    "InjuryRecord",
    "InjurySeverity",
    "PlayerRecord",
    "TeamRecord",
    "TERMINAL_STATUSES",
    "classify_severity",
    "DataStore",
    "InMemoryDataStore",
    "StoreError",
    "StoreUnavailableError",
]
