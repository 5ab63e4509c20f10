"""Tests for the bounded per-team scoring functions."""
import pytest

from conftest import GAME_DAY, team_history
from src.data.records import InjuryRecord, InjurySeverity, PlayerRecord, classify_severity
from src.features.scoring import (
    average_efficiency,
    fatigue_score,
    form_score,
    h2h_score,
    injury_impact_score,
    momentum_label,
    player_efficiency,
    summarize_form,
)


class TestFormScore:
    """Tests for the form score and its aggregation."""

    def test_scenario_team_x(self):
        games = team_history("X", [(118, 100), (115, 101), (100, 107), (120, 104), (117, 99),
                                   (98, 105), (114, 102), (119, 105), (103, 107), (116, 100)])
        summary = summarize_form("X", games)
        assert summary["wins"] == 7
        assert summary["losses"] == 3
        assert summary["avg_points_for"] == pytest.approx(112.0)
        assert summary["avg_points_against"] == pytest.approx(103.0)
        assert summary["last_5_wins"] == 4
        assert summary["momentum"] == "hot"
        assert summary["form_score"] == pytest.approx(8.5)
        assert summary["home_games"] == 10
        assert summary["home_wins"] == 7

    def test_scenario_team_y(self):
        games = team_history("Y", [(95, 110), (105, 100), (100, 112), (104, 101), (98, 111),
                                   (110, 103), (97, 114), (102, 98), (99, 113), (100, 118)])
        summary = summarize_form("Y", games)
        assert summary["wins"] == 4
        assert summary["form_score"] == pytest.approx(4.6)
        assert summary["momentum"] == "neutral"

    def test_no_games_gives_empty_summary(self):
        assert summarize_form("X", []) == {}

    def test_form_score_is_clamped(self):
        assert form_score(1.0, 140.0, 90.0, 5) == 10.0
        assert form_score(0.0, 80.0, 130.0, 0) == 0.0

    def test_away_games_use_away_score(self):
        from conftest import make_game

        game = make_game("g", "H", "X", GAME_DAY, home_score=100, away_score=110)
        summary = summarize_form("X", [game])
        assert summary["wins"] == 1
        assert summary["home_games"] == 0

    @pytest.mark.parametrize("wins,label", [(5, "hot"), (4, "hot"), (3, "positive"), (2, "neutral"), (1, "cold"), (0, "cold")])
    def test_momentum_labels(self, wins, label):
        assert momentum_label(wins) == label


class TestFatigueScore:
    """Tests for fatigue scoring."""

    def test_back_to_back_is_most_tired(self):
        assert fatigue_score(0, 2) == 10.0
        assert fatigue_score(1, 2) == 7.0

    def test_rested_team_is_fresh(self):
        assert fatigue_score(4, 1) == 0.0
        assert fatigue_score(10, 0) == 0.0

    def test_dense_week_adds_penalty(self):
        assert fatigue_score(2, 3) == 5.0
        assert fatigue_score(2, 4) == 6.0

    def test_score_is_capped(self):
        assert fatigue_score(0, 6) == 10.0


class TestHeadToHead:
    def test_no_meetings_is_neutral(self):
        assert h2h_score(0, 0) == 5.0

    def test_dominance(self):
        assert h2h_score(3, 4) == 7.5
        assert h2h_score(0, 4) == 0.0


class TestInjuryImpact:
    """Tests for severity-weighted injury impact."""

    def _injury(self, severity, status="out", is_active=True):
        return InjuryRecord(player_id="p", team_id="T", severity=severity, status=status, is_active=is_active)

    def test_weighted_sum(self):
        injuries = [self._injury("severe"), self._injury("moderate"), self._injury("minor")]
        assert injury_impact_score(injuries) == 6.0

    def test_inactive_and_healthy_ignored(self):
        injuries = [self._injury("severe", is_active=False), self._injury("severe", status="healthy")]
        assert injury_impact_score(injuries) == 0.0

    def test_capped_at_ten(self):
        assert injury_impact_score([self._injury("severe")] * 5) == 10.0

    def test_free_text_severity(self):
        assert classify_severity("Out (knee)") == InjurySeverity.SEVERE
        assert classify_severity("Questionable") == InjurySeverity.MINOR
        assert classify_severity("") == InjurySeverity.UNKNOWN

    @pytest.mark.parametrize("text, expected", [
        ("questionable, will play without restriction", InjurySeverity.MINOR),
        ("hair injury, probable", InjurySeverity.MINOR),
        ("placed on IR (ankle)", InjurySeverity.SEVERE),
        ("day-to-day with soreness", InjurySeverity.MINOR),
        ("routine checkup", InjurySeverity.UNKNOWN),
    ])
    def test_aliases_match_whole_words(self, text, expected):
        assert classify_severity(text) == expected


class TestPlayerEfficiency:
    """Tests for sport-specific player efficiency."""

    def test_nba_formula(self):
        assert player_efficiency({"points": 20, "assists": 5, "rebounds": 5}, "nba") == 20.0

    def test_nhl_formula(self):
        assert player_efficiency({"goals": 10, "assists": 5}, "nhl") == 40.0

    def test_unknown_sport_or_empty_stats(self):
        assert player_efficiency({"points": 30}, "cricket") == 50.0
        assert player_efficiency({}, "nba") == 50.0

    def test_clamped_to_hundred(self):
        assert player_efficiency({"points": 300}, "nba") == 100.0

    def test_average_over_roster(self):
        players = [
            PlayerRecord(id="a", team_id="T", name="A", stats={"points": 20, "assists": 5, "rebounds": 5}),
            PlayerRecord(id="b", team_id="T", name="B", stats={"points": 40, "assists": 5, "rebounds": 5}),
        ]
        assert average_efficiency(players, "nba") == pytest.approx(25.0)
        assert average_efficiency([], "nba") == 50.0
