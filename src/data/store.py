"""
Read surface of the relational data store.

The store itself (teams, players, games, injuries) is owned by the ingestion
side. The prediction core depends only on the async interface below, so the
same engine runs against a database-backed implementation in production and
the in-memory implementation in tests and local replays.
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from src.data.records import (
    GameRecord,
    GameStatus,
    InjuryRecord,
    PlayerRecord,
    TeamRecord,
    TERMINAL_STATUSES,
)
from src.utils.logging import get_logger

logger = get_logger(__name__)


class StoreError(Exception):
    """Base class for storage failures."""
    pass


class StoreUnavailableError(StoreError):
    """Raised when the backing store cannot be reached at all."""
    pass


class DataStore(ABC):
    """
    Abstract read surface over games, teams, players and injuries.

    Implementations return empty lists / None for missing data and raise
    StoreError only when the store itself fails.
    """

    @abstractmethod
    async def get_team(self, team_id: str) -> Optional[TeamRecord]:
        ...

    @abstractmethod
    async def get_game(self, game_id: str) -> Optional[GameRecord]:
        ...

    @abstractmethod
    async def get_recent_games(
        self,
        team_id: str,
        limit: int = 10,
        before: Optional[datetime] = None,
        statuses: Iterable[GameStatus] = TERMINAL_STATUSES,
    ) -> List[GameRecord]:
        """Most recent games for a team, newest first."""
        ...

    @abstractmethod
    async def get_games_between(
        self,
        team_a: str,
        team_b: str,
        limit: int = 10,
        before: Optional[datetime] = None,
        statuses: Iterable[GameStatus] = TERMINAL_STATUSES,
    ) -> List[GameRecord]:
        """Most recent meetings between two teams (either venue), newest first."""
        ...

    @abstractmethod
    async def get_games_in_range(
        self,
        start: datetime,
        end: datetime,
        statuses: Optional[Iterable[GameStatus]] = None,
    ) -> List[GameRecord]:
        ...

    @abstractmethod
    async def get_team_players(self, team_id: str) -> List[PlayerRecord]:
        ...

    @abstractmethod
    async def get_team_injuries(self, team_id: str) -> Optional[List[InjuryRecord]]:
        """Injury reports for the team; None when there is no injury feed at all."""
        ...


class InMemoryDataStore(DataStore):
    """
    DataStore over plain lists of records.

    Used by tests and by the CLI scripts when replaying an exported snapshot
    (a JSON document with "teams", "players", "games" and "injuries" arrays).
    """

    def __init__(
        self,
        teams: Optional[Iterable[TeamRecord]] = None,
        players: Optional[Iterable[PlayerRecord]] = None,
        games: Optional[Iterable[GameRecord]] = None,
        injuries: Optional[Iterable[InjuryRecord]] = None,
    ):
        self.teams: Dict[str, TeamRecord] = {t.id: t for t in (teams or [])}
        self.players: List[PlayerRecord] = list(players or [])
        self.games: Dict[str, GameRecord] = {g.id: g for g in (games or [])}
        # None: no injury feed, as opposed to a feed with no reports
        self.injuries: Optional[List[InjuryRecord]] = None if injuries is None else list(injuries)

    @classmethod
    def from_dict(cls, payload: dict) -> "InMemoryDataStore":
        return cls(
            teams=[TeamRecord.model_validate(t) for t in payload.get("teams", [])],
            players=[PlayerRecord.model_validate(p) for p in payload.get("players", [])],
            games=[GameRecord.model_validate(g) for g in payload.get("games", [])],
            injuries=(
                [InjuryRecord.model_validate(i) for i in payload["injuries"]]
                if payload.get("injuries") is not None
                else None
            ),
        )

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryDataStore":
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read data snapshot {path}: {e}") from e
        store = cls.from_dict(payload)
        logger.info(
            f"Loaded snapshot {path}: {len(store.teams)} teams, {len(store.games)} games, "
            f"{len(store.players)} players, "
            f"{len(store.injuries) if store.injuries is not None else 'no'} injuries"
        )
        return store

    def add_game(self, game: GameRecord) -> None:
        self.games[game.id] = game

    @staticmethod
    def _filter(
        games: Iterable[GameRecord],
        before: Optional[datetime],
        statuses: Optional[Iterable[GameStatus]],
    ) -> List[GameRecord]:
        allowed = set(statuses) if statuses is not None else None
        selected = [
            g for g in games
            if (before is None or g.game_date < before)
            and (allowed is None or g.status in allowed)
        ]
        selected.sort(key=lambda g: g.game_date, reverse=True)
        return selected

    async def get_team(self, team_id: str) -> Optional[TeamRecord]:
        return self.teams.get(team_id)

    async def get_game(self, game_id: str) -> Optional[GameRecord]:
        return self.games.get(game_id)

    async def get_recent_games(
        self,
        team_id: str,
        limit: int = 10,
        before: Optional[datetime] = None,
        statuses: Iterable[GameStatus] = TERMINAL_STATUSES,
    ) -> List[GameRecord]:
        games = (g for g in self.games.values() if g.involves(team_id))
        return self._filter(games, before, statuses)[:limit]

    async def get_games_between(
        self,
        team_a: str,
        team_b: str,
        limit: int = 10,
        before: Optional[datetime] = None,
        statuses: Iterable[GameStatus] = TERMINAL_STATUSES,
    ) -> List[GameRecord]:
        games = (g for g in self.games.values() if g.involves(team_a) and g.involves(team_b))
        return self._filter(games, before, statuses)[:limit]

    async def get_games_in_range(
        self,
        start: datetime,
        end: datetime,
        statuses: Optional[Iterable[GameStatus]] = None,
    ) -> List[GameRecord]:
        games = (g for g in self.games.values() if start <= g.game_date <= end)
        return list(reversed(self._filter(games, None, statuses)))

    async def get_team_players(self, team_id: str) -> List[PlayerRecord]:
        return [p for p in self.players if p.team_id == team_id]

    async def get_team_injuries(self, team_id: str) -> Optional[List[InjuryRecord]]:
        if self.injuries is None:
            return None
        return [i for i in self.injuries if i.team_id == team_id]
