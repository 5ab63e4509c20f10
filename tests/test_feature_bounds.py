"""Randomized bound and monotonicity checks over the feature pipeline."""
from datetime import timedelta

import numpy as np
import pytest

from conftest import GAME_DAY, make_game
from src.data.records import InjuryRecord, PlayerRecord
from src.data.store import InMemoryDataStore
from src.features.adapter import FeatureAdapter
from src.features.scoring import fatigue_score
from src.features.vector import FEATURE_BOUNDS, ContextSignals, FeatureVector
from src.prediction.engine import Matchup, PredictionEngine
from src.prediction.sport_config import SPORT_CONFIGS

SEEDS = [0, 1, 2, 7, 42, 1234]


def _random_store(rng: np.random.Generator) -> InMemoryDataStore:
    """Random history for H and A; may be empty for either team."""
    games = []
    for team in ("H", "A"):
        for index in range(int(rng.integers(0, 15))):
            days_back = int(rng.integers(0, 40)) + 1
            other = "A" if team == "H" and rng.random() < 0.2 else f"o{index}"
            home, away = (team, other) if rng.random() < 0.5 else (other, team)
            games.append(make_game(
                f"{team}-{index}",
                home,
                away,
                GAME_DAY - timedelta(days=days_back, hours=int(rng.integers(0, 23))),
                home_score=float(rng.integers(0, 160)),
                away_score=float(rng.integers(0, 160)),
            ))
    severities = ["severe", "moderate", "minor", "unknown"]
    injuries = [
        InjuryRecord(player_id=f"p{i}", team_id=str(rng.choice(["H", "A"])), severity=str(rng.choice(severities)))
        for i in range(int(rng.integers(0, 8)))
    ]
    players = [
        PlayerRecord(
            id=f"pl{i}",
            team_id=str(rng.choice(["H", "A"])),
            name=f"Player {i}",
            stats={"points": float(rng.integers(0, 60)), "assists": float(rng.integers(0, 15))},
        )
        for i in range(int(rng.integers(0, 6)))
    ]
    return InMemoryDataStore(games=games, injuries=injuries, players=players)


def _assert_in_bounds(vector: FeatureVector) -> None:
    for name, (low, high, _) in FEATURE_BOUNDS.items():
        value = getattr(vector, name)
        assert low <= value <= high, f"{name}={value} outside [{low}, {high}]"


class TestFeatureBounds:
    """Every component of every vector stays on its documented scale."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", SEEDS)
    async def test_random_histories(self, seed):
        rng = np.random.default_rng(seed)
        engine = PredictionEngine(FeatureAdapter(_random_store(rng)), rng=rng)
        context = ContextSignals(
            weather_impact=float(rng.uniform(-20, 20)),
            home_sentiment=float(rng.uniform(-5, 15)),
            away_sentiment=None,
            market_signal=float(rng.uniform(-20, 20)),
        )
        matchup = Matchup("G-1", "nba", "H", "A", GAME_DAY, context=context)

        vector = await engine.build_features(matchup, SPORT_CONFIGS["nba"])

        _assert_in_bounds(vector)
        assert 0.0 <= engine.differential(vector, SPORT_CONFIGS["nba"]) <= 100.0

    @pytest.mark.asyncio
    async def test_zero_games_zero_meetings(self, empty_store):
        engine = PredictionEngine(FeatureAdapter(empty_store))
        vector = await engine.build_features(
            Matchup("G-1", "nba", "H", "A", GAME_DAY), SPORT_CONFIGS["nba"]
        )
        _assert_in_bounds(vector)
        assert vector.home_form == vector.away_form == 5.0
        assert vector.h2h_advantage == 5.0
        assert vector.rest_advantage == 0.0

    @pytest.mark.parametrize("seed", SEEDS)
    def test_build_clamps_out_of_range_values(self, seed):
        rng = np.random.default_rng(seed)
        values = {name: float(rng.uniform(-1000, 1000)) for name in FEATURE_BOUNDS}
        _assert_in_bounds(FeatureVector.build(**values))

    def test_missing_and_nan_become_neutral(self):
        vector = FeatureVector.build(home_form=None, away_form=float("nan"))
        assert vector.home_form == 5.0
        assert vector.away_form == 5.0

    def test_unknown_component_rejected(self):
        with pytest.raises(ValueError):
            FeatureVector.build(home_elo=1500.0)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_extreme_vectors_keep_differential_in_range(self, seed):
        rng = np.random.default_rng(seed)
        engine = PredictionEngine(FeatureAdapter(InMemoryDataStore()), rng=rng)
        for config in SPORT_CONFIGS.values():
            for _ in range(50):
                low_or_high = {name: bounds[int(rng.integers(0, 2))] for name, bounds in FEATURE_BOUNDS.items()}
                vector = FeatureVector.build(**low_or_high)
                assert 0.0 <= engine.differential(vector, config) <= 100.0


class TestFatigueMonotonicity:
    """More rest never makes a team more tired."""

    @pytest.mark.parametrize("games_last_7", range(0, 8))
    def test_score_non_increasing_in_rest(self, games_last_7):
        scores = [fatigue_score(days, games_last_7) for days in range(0, 15)]
        assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))

    @pytest.mark.parametrize("days_rest", range(0, 8))
    def test_score_non_decreasing_in_games(self, days_rest):
        scores = [fatigue_score(days_rest, games) for games in range(0, 10)]
        assert all(later >= earlier for earlier, later in zip(scores, scores[1:]))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", SEEDS)
    async def test_adapter_rest_monotonic(self, seed):
        """Pushing the team's last game further back never raises fatigue."""
        rng = np.random.default_rng(seed)
        older = [int(d) for d in rng.integers(8, 30, size=3)]
        previous = None
        for last_game_days_back in range(1, 9):
            games = [make_game("last", "T", "O", GAME_DAY - timedelta(days=last_game_days_back),
                               home_score=100, away_score=95)]
            games += [make_game(f"old{i}", "T", "O", GAME_DAY - timedelta(days=d), home_score=100, away_score=95)
                      for i, d in enumerate(older)]
            fatigue = await FeatureAdapter(InMemoryDataStore(games=games)).fatigue("T", GAME_DAY)
            if previous is not None:
                assert fatigue.fatigue_score <= previous
            previous = fatigue.fatigue_score
