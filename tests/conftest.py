"""Shared pytest fixtures and configuration hooks."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the project root (which contains the `src` package) is importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT_STR = str(PROJECT_ROOT)
if PROJECT_ROOT_STR not in sys.path:
    sys.path.insert(0, PROJECT_ROOT_STR)


# =============================================================================
# Environment Variables Setup - MUST run before any src imports
# =============================================================================
# src/config.py reads these at import time; pin them so a developer's shell
# (or a CI secret) cannot change test behaviour.

TEST_ENV_VARS = {
    # Feature windows
    "FORM_GAME_WINDOW": "10",
    "H2H_MEETING_WINDOW": "10",
    "FEATURE_CACHE_TTL_SECONDS": "300",

    # Validation
    "VALIDATION_LOOKBACK_DAYS": "7",
    "VALIDATION_BATCH_SIZE": "100",
    "ACCURACY_WINDOW_DAYS": "7",

    # Tuning
    "TUNING_LOOKBACK_DAYS": "30",
    "TUNING_MIN_SAMPLES": "20",
    "TUNING_DAMPING": "0.3",
    "TUNING_DECISIVE_THRESHOLD": "0.5",
    "WEIGHT_MIN": "0.02",
    "WEIGHT_MAX": "0.30",
    "WEIGHTS_AUTO_APPLY": "false",

    # Versioning
    "MODEL_VERSION": "ensemble-test",

    # Logging
    "LOG_LEVEL": "WARNING",
    "LOG_FORMAT": "text",
}

# Apply test environment variables
for key, value in TEST_ENV_VARS.items():
    if key not in os.environ:
        os.environ[key] = value


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Ensure test environment variables are set for each test."""
    for key, value in TEST_ENV_VARS.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))


# =============================================================================
# Record builders
# =============================================================================

GAME_DAY = datetime(2025, 1, 20, 0, 0, tzinfo=timezone.utc)


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_game(game_id, home, away, when, home_score=None, away_score=None, status=None, sport="nba", venue_city=None):
    from src.data.records import GameRecord, GameStatus

    if status is None:
        status = GameStatus.FINAL if home_score is not None else GameStatus.SCHEDULED
    return GameRecord(
        id=game_id,
        sport=sport,
        game_date=when,
        home_team_id=home,
        away_team_id=away,
        status=status,
        home_score=home_score,
        away_score=away_score,
        venue_city=venue_city,
    )


def team_history(team_id, results, before=GAME_DAY, opponent_prefix="opp", start_day=2, spacing_days=2):
    """
    Completed games for team_id ending `start_day` days before `before`.

    results: list of (points_for, points_against), newest first. The team is
    at home in every game, so home record equals overall record.
    """
    games = []
    for index, (scored, allowed) in enumerate(results):
        when = before - timedelta(days=start_day + index * spacing_days)
        games.append(make_game(
            f"{team_id}-g{index}",
            team_id,
            f"{opponent_prefix}{index}",
            when,
            home_score=scored,
            away_score=allowed,
        ))
    return games


def make_prediction(
    game_id="G-1",
    home="H",
    away="A",
    created_at=None,
    predicted_winner=None,
    home_prob=0.6,
    spread=7.0,
    confidence=70.0,
    features=None,
    is_fallback=False,
    sport="nba",
    weights_version="default",
):
    """A stored-looking prediction; the winner follows home_prob unless given."""
    from src.tracking.records import PredictionRecord, generate_prediction_id

    created_at = created_at or GAME_DAY - timedelta(hours=6)
    if predicted_winner is None:
        predicted_winner = home if home_prob >= 0.5 else away
    return PredictionRecord(
        prediction_id=generate_prediction_id(game_id, created_at, weights_version),
        game_id=game_id,
        sport=sport,
        home_team_id=home,
        away_team_id=away,
        created_at=created_at,
        predicted_winner=predicted_winner,
        predicted_side="home" if predicted_winner == home else "away",
        home_win_probability=home_prob,
        away_win_probability=round(1.0 - home_prob, 4),
        confidence=confidence,
        predicted_home_score=110.0 + spread / 2.0,
        predicted_away_score=110.0 - spread / 2.0,
        predicted_spread=spread,
        predicted_total=220.0,
        features=features if features is not None else {},
        model_version="fallback-statistical-1.0" if is_fallback else "ensemble-test",
        weights_version=weights_version,
        is_fallback=is_fallback,
        fallback_reason="StoreUnavailableError: down" if is_fallback else None,
        game_date=GAME_DAY,
    )


@pytest.fixture
def scenario_a_store():
    """X: 7-3 averaging 112/103. Y: 4-6 averaging 101/108. No meetings."""
    from src.data.records import TeamRecord
    from src.data.store import InMemoryDataStore

    x_results = [(118, 100), (115, 101), (100, 107), (120, 104), (117, 99),
                 (98, 105), (114, 102), (119, 105), (103, 107), (116, 100)]
    y_results = [(95, 110), (105, 100), (100, 112), (104, 101), (98, 111),
                 (110, 103), (97, 114), (102, 98), (99, 113), (100, 118)]
    games = team_history("X", x_results, opponent_prefix="xo") + team_history("Y", y_results, opponent_prefix="yo")
    games.append(make_game("XY-1", "X", "Y", GAME_DAY))

    teams = [TeamRecord(id="X", name="Team X", sport="nba"), TeamRecord(id="Y", name="Team Y", sport="nba")]
    return InMemoryDataStore(teams=teams, games=games)


@pytest.fixture
def empty_store():
    from src.data.store import InMemoryDataStore

    return InMemoryDataStore(games=[make_game("G-1", "H", "A", GAME_DAY)])


@pytest.fixture
def test_settings(tmp_path):
    from src.config import Settings

    return Settings(data_dir=str(tmp_path / "data"))
