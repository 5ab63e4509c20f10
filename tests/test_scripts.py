"""Tests for the trigger scripts."""
import json
import sys
from datetime import datetime, timezone

import pytest

from conftest import GAME_DAY, make_game, team_history
from src.config import load_settings
from src.tracking.store import JsonlPredictionStore


@pytest.fixture
def snapshot_file(tmp_path):
    games = team_history("X", [(110, 100)] * 5) + team_history("Y", [(100, 110)] * 5, opponent_prefix="yo")
    games.append(make_game("XY-1", "X", "Y", GAME_DAY))
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({
        "teams": [{"id": "X", "name": "Team X", "sport": "nba"}, {"id": "Y", "name": "Team Y", "sport": "nba"}],
        "games": [g.model_dump(mode="json") for g in games],
    }), encoding="utf-8")
    return path


def _run(monkeypatch, main, *argv):
    monkeypatch.setattr(sys, "argv", ["script", *argv])
    return main()


def _printed_json(capsys):
    # log lines may precede the JSON document on stdout
    out = capsys.readouterr().out
    return json.loads(out[out.find("{"):])


class TestCliHelpers:
    def test_parse_as_of(self):
        from scripts.cli_common import parse_as_of

        assert parse_as_of(None) is None
        assert parse_as_of("2025-01-20T00:00:00Z") == GAME_DAY
        assert parse_as_of("2025-01-20T06:00") == datetime(2025, 1, 20, 6, tzinfo=timezone.utc)

    def test_load_context(self, tmp_path):
        from scripts.run_predictions import load_context

        path = tmp_path / "context.json"
        path.write_text(json.dumps({"XY-1": {"weather_impact": -1.5, "unknown_key": 3}}), encoding="utf-8")
        context = load_context(path)
        assert context["XY-1"].weather_impact == -1.5
        assert context["XY-1"].market_signal is None
        assert load_context(None) == {}


class TestScripts:
    """End-to-end runs against a snapshot file."""

    def test_run_predictions(self, monkeypatch, capsys, snapshot_file):
        from scripts.run_predictions import main

        code = _run(
            monkeypatch, main,
            "--snapshot", str(snapshot_file),
            "--start", "2025-01-19T23:00:00+00:00",
            "--end", "2025-01-20T01:00:00+00:00",
            "--seed", "3",
        )

        assert code == 0
        summary = _printed_json(capsys)
        assert summary["predicted"] == 1
        stored = JsonlPredictionStore(load_settings().predictions_file).list_all()
        assert [r.predicted_winner for r in stored] == ["X"]

    def test_validate_with_nothing_pending(self, monkeypatch, capsys, snapshot_file):
        from scripts.validate_predictions import main

        assert _run(monkeypatch, main, "--snapshot", str(snapshot_file)) == 0
        assert _printed_json(capsys)["validated"] == 0

    def test_tune_reports_insufficient_data(self, monkeypatch, capsys, snapshot_file):
        from scripts.tune_weights import main

        assert _run(monkeypatch, main, "--snapshot", str(snapshot_file)) == 0
        assert _printed_json(capsys)["status"] == "insufficient_data"

    def test_feedback_cycle_validates_then_tunes(self, monkeypatch, capsys, snapshot_file):
        from scripts.feedback_cycle import main

        assert _run(monkeypatch, main, "--snapshot", str(snapshot_file), "--retry-wait", "0") == 0
        report = _printed_json(capsys)
        assert report["validate_predictions"]["status"] == "success"
        assert report["validate_predictions"]["output"]["validated"] == 0
        assert report["tune_weights"]["status"] == "success"
        assert report["tune_weights"]["output"]["status"] == "insufficient_data"

    def test_adopt_lists_default(self, monkeypatch, capsys):
        from scripts.adopt_weights import main

        assert _run(monkeypatch, main, "--list") == 0
        assert "* default" in capsys.readouterr().out

    def test_adopt_unknown_version_fails(self, monkeypatch):
        from scripts.adopt_weights import main

        assert _run(monkeypatch, main, "w-missing") == 1
