"""
Feature Adapter: raw store records -> normalized per-team signals.

All methods are pure reads plus transforms. Missing upstream data never fails
a call; the neutral snapshot for that signal is returned instead (and marked
`is_default`). Store failures propagate so the engine can fall back.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

from src.config import FeatureSettings
from src.data.records import GameRecord
from src.data.store import DataStore
from src.features.scoring import (
    average_efficiency,
    clamp,
    fatigue_score,
    h2h_score,
    injury_impact_score,
    summarize_form,
)
from src.features.snapshots import (
    FatigueSnapshot,
    HeadToHeadSummary,
    InjuryImpact,
    PlayerMatchup,
    TeamFormSnapshot,
)
from src.features.travel import travel_between
from src.utils.cache import TTLCache
from src.utils.logging import get_logger

logger = get_logger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:-]*$")

HOME_ADVANTAGE_MIN = 3.0
HOME_ADVANTAGE_MAX = 8.0
FATIGUE_WINDOW = timedelta(days=7)


class InvalidIdentifierError(ValueError):
    """Raised for empty, non-string or malformed team/game identifiers."""
    pass


def validate_identifier(value: Any, label: str = "identifier") -> str:
    if not isinstance(value, str):
        raise InvalidIdentifierError(f"{label} must be a string, got {type(value).__name__}")
    if not _IDENTIFIER_RE.match(value):
        raise InvalidIdentifierError(f"Malformed {label}: {value!r}")
    return value


def _as_of(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class FeatureAdapter:
    """
    Derives form, fatigue, head-to-head, injury and player signals for a matchup.

    Results are memoised in a short-TTL in-process cache keyed by the inputs,
    including the reference date, so a slate touching the same team twice
    reads the store once.
    """

    def __init__(
        self,
        store: DataStore,
        feature_settings: Optional[FeatureSettings] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.store = store
        self.settings = feature_settings or FeatureSettings()
        self.cache = cache if cache is not None else TTLCache(self.settings.cache_ttl_seconds)

    # =========================================================================
    # FORM
    # =========================================================================

    async def team_form(self, team_id: str, as_of: Optional[datetime] = None) -> TeamFormSnapshot:
        team_id = validate_identifier(team_id, "team_id")
        as_of = _as_of(as_of)
        key = ("form", team_id, as_of.isoformat(), self.settings.form_game_window)

        async def compute() -> TeamFormSnapshot:
            games = await self.store.get_recent_games(
                team_id, limit=self.settings.form_game_window, before=as_of
            )
            summary = summarize_form(team_id, [g for g in games if g.has_scores])
            if not summary:
                logger.debug(f"No completed games for {team_id} before {as_of:%Y-%m-%d}; neutral form")
                return TeamFormSnapshot.neutral(team_id)
            return TeamFormSnapshot(team_id=team_id, **summary)

        return await self.cache.get_or_fetch(key, compute)

    # =========================================================================
    # FATIGUE
    # =========================================================================

    async def fatigue(
        self,
        team_id: str,
        as_of: Optional[datetime] = None,
        venue_city: Optional[str] = None,
    ) -> FatigueSnapshot:
        team_id = validate_identifier(team_id, "team_id")
        as_of = _as_of(as_of)
        key = ("fatigue", team_id, as_of.isoformat(), venue_city)

        async def compute() -> FatigueSnapshot:
            games = await self.store.get_recent_games(
                team_id, limit=self.settings.form_game_window, before=as_of
            )
            if not games:
                return FatigueSnapshot.neutral(team_id)
            return self._fatigue_from_games(team_id, games, as_of, venue_city)

        return await self.cache.get_or_fetch(key, compute)

    @staticmethod
    def _fatigue_from_games(
        team_id: str,
        games: list[GameRecord],
        as_of: datetime,
        venue_city: Optional[str],
    ) -> FatigueSnapshot:
        last_game = games[0]
        days_rest = max(0, (as_of - last_game.game_date).days)
        games_last_7 = sum(1 for g in games if g.game_date >= as_of - FATIGUE_WINDOW)
        miles, zones = travel_between(last_game.venue_city, venue_city)
        return FatigueSnapshot(
            team_id=team_id,
            days_rest=days_rest,
            games_last_7_days=games_last_7,
            is_back_to_back=days_rest <= 1,
            fatigue_score=fatigue_score(days_rest, games_last_7),
            travel_miles=miles,
            time_zones_crossed=zones,
        )

    # =========================================================================
    # HEAD TO HEAD
    # =========================================================================

    async def head_to_head(
        self,
        team_a: str,
        team_b: str,
        as_of: Optional[datetime] = None,
    ) -> HeadToHeadSummary:
        team_a = validate_identifier(team_a, "team_id")
        team_b = validate_identifier(team_b, "team_id")
        as_of = _as_of(as_of)
        key = ("h2h", team_a, team_b, as_of.isoformat(), self.settings.h2h_meeting_window)

        async def compute() -> HeadToHeadSummary:
            meetings = await self.store.get_games_between(
                team_a, team_b, limit=self.settings.h2h_meeting_window, before=as_of
            )
            meetings = [g for g in meetings if g.has_scores]
            if not meetings:
                return HeadToHeadSummary.neutral(team_a, team_b)

            wins_a = wins_b = 0
            margin_total = 0.0
            for game in meetings:
                scored, allowed = game.score_for(team_a)
                margin_total += scored - allowed
                if scored > allowed:
                    wins_a += 1
                elif allowed > scored:
                    wins_b += 1

            total = len(meetings)
            return HeadToHeadSummary(
                team_a=team_a,
                team_b=team_b,
                total_games=total,
                wins_team_a=wins_a,
                wins_team_b=wins_b,
                avg_margin=round(margin_total / total, 1),
                h2h_score=h2h_score(wins_a, total),
            )

        return await self.cache.get_or_fetch(key, compute)

    # =========================================================================
    # INJURIES
    # =========================================================================

    async def injury_impact(self, team_id: str) -> InjuryImpact:
        team_id = validate_identifier(team_id, "team_id")

        async def compute() -> InjuryImpact:
            injuries = await self.store.get_team_injuries(team_id)
            if injuries is None:
                return InjuryImpact.neutral(team_id)
            active = [i for i in injuries if i.counts_as_active]
            return InjuryImpact(
                team_id=team_id,
                active_injury_count=len(active),
                key_players_out=sum(1 for i in active if i.is_key_player),
                impact_score=injury_impact_score(active),
            )

        return await self.cache.get_or_fetch(("injuries", team_id), compute)

    async def injury_comparison(self, home_team_id: str, away_team_id: str) -> Tuple[InjuryImpact, InjuryImpact]:
        home = await self.injury_impact(home_team_id)
        away = await self.injury_impact(away_team_id)
        return home, away

    # =========================================================================
    # PLAYERS
    # =========================================================================

    async def player_matchup(self, home_team_id: str, away_team_id: str, sport: Optional[str] = None) -> PlayerMatchup:
        home_team_id = validate_identifier(home_team_id, "team_id")
        away_team_id = validate_identifier(away_team_id, "team_id")

        async def compute() -> PlayerMatchup:
            home_players = await self.store.get_team_players(home_team_id)
            away_players = await self.store.get_team_players(away_team_id)
            if not any(p.stats for p in home_players + away_players):
                return PlayerMatchup.neutral()
            return PlayerMatchup(
                home_avg_efficiency=round(average_efficiency(home_players, sport), 1),
                away_avg_efficiency=round(average_efficiency(away_players, sport), 1),
                home_player_count=len(home_players),
                away_player_count=len(away_players),
            )

        return await self.cache.get_or_fetch(("players", home_team_id, away_team_id, sport), compute)

    # =========================================================================
    # HOME ADVANTAGE
    # =========================================================================

    async def home_advantage(
        self,
        team_id: str,
        base: float,
        form: Optional[TeamFormSnapshot] = None,
    ) -> float:
        """
        Home-court advantage on [3, 8].

        Starts from the sport base, moves with the team's recent home record
        and with the venue score carried on the team record.
        """
        team_id = validate_identifier(team_id, "team_id")
        advantage = base

        if form is not None and form.home_win_pct is not None:
            advantage += (form.home_win_pct - 0.5) * 3.0

        team = await self.store.get_team(team_id)
        if team is not None and team.home_field_advantage_score is not None:
            advantage += (team.home_field_advantage_score - 5.0) * 0.5

        return round(clamp(advantage, HOME_ADVANTAGE_MIN, HOME_ADVANTAGE_MAX), 2)
