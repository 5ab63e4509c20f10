"""Tests for configuration module."""
from pathlib import Path

import pytest

from src.config import (
    DEFAULT_MODEL_VERSION,
    FeatureSettings,
    Settings,
    TuningSettings,
    ValidationSettings,
    load_settings,
    read_version_file,
    resolve_model_version,
)


class TestSettings:
    """Tests for Settings dataclass."""

    def test_defaults(self):
        """Test documented defaults with the pinned test environment."""
        settings = Settings()
        assert settings.features.form_game_window == 10
        assert settings.features.h2h_meeting_window == 10
        assert settings.features.cache_ttl_seconds == 300
        assert settings.validation.lookback_days == 7
        assert settings.validation.batch_size == 100
        assert settings.tuning.min_samples == 20
        assert settings.tuning.damping == pytest.approx(0.3)
        assert settings.tuning.weight_min == pytest.approx(0.02)
        assert settings.tuning.weight_max == pytest.approx(0.30)
        assert settings.tuning.auto_apply is False

    def test_data_paths_follow_data_dir(self, monkeypatch, tmp_path):
        """Test that storage files live under DATA_DIR."""
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        settings = load_settings()
        assert settings.predictions_file == Path(tmp_path) / "predictions.jsonl"
        assert settings.run_log_file == Path(tmp_path) / "run_log.jsonl"
        assert settings.weights_dir == Path(tmp_path) / "weights"

    def test_env_override(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv("TUNING_MIN_SAMPLES", "50")
        monkeypatch.setenv("WEIGHTS_AUTO_APPLY", "true")
        monkeypatch.setenv("VALIDATION_BATCH_SIZE", "25")
        assert TuningSettings().min_samples == 50
        assert TuningSettings().auto_apply is True
        assert ValidationSettings().batch_size == 25

    def test_invalid_integer_names_variable(self, monkeypatch):
        """Test that a malformed number fails loudly with the variable name."""
        monkeypatch.setenv("FORM_GAME_WINDOW", "ten")
        with pytest.raises(ValueError, match="FORM_GAME_WINDOW"):
            FeatureSettings()

    def test_invalid_float_names_variable(self, monkeypatch):
        monkeypatch.setenv("TUNING_DAMPING", "lots")
        with pytest.raises(ValueError, match="TUNING_DAMPING"):
            TuningSettings()

    def test_settings_are_frozen(self):
        settings = Settings()
        with pytest.raises(Exception):
            settings.data_dir = "/elsewhere"

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings().log_level == "DEBUG"


class TestModelVersion:
    """Tests for the model version stamped on predictions."""

    def test_env_wins(self, monkeypatch):
        monkeypatch.setenv("MODEL_VERSION", "ensemble-nightly")
        assert resolve_model_version() == "ensemble-nightly"
        assert Settings().model_version == "ensemble-nightly"

    def test_version_file_when_env_unset(self, monkeypatch):
        monkeypatch.delenv("MODEL_VERSION", raising=False)
        assert resolve_model_version() == (read_version_file() or DEFAULT_MODEL_VERSION)

    def test_version_file(self, tmp_path):
        path = tmp_path / "VERSION"
        path.write_text("ensemble-9.9.9\n", encoding="utf-8")
        assert read_version_file(path) == "ensemble-9.9.9"
        assert read_version_file(tmp_path / "missing") is None
