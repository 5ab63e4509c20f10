from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Anchor paths to the repository root even when scripts are executed elsewhere
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# NOTE: Every setting is read from the environment with a documented default.
# Invalid values raise immediately so a misconfigured job never runs half-tuned.


def _env_optional(key: str) -> Optional[str]:
    """Resolve optional environment variable - returns None if not set."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(key: str, default: int) -> int:
    value = _env_optional(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {key} must be an integer, got {value!r}")


def _env_float(key: str, default: float) -> float:
    value = _env_optional(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {key} must be a number, got {value!r}")


def _env_bool(key: str, default: bool = False) -> bool:
    value = _env_optional(key)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


DEFAULT_MODEL_VERSION = "ensemble-2.0.0"


def read_version_file(path: Optional[Path] = None) -> Optional[str]:
    """Contents of the VERSION file at the repository root, if any."""
    try:
        value = (path or PROJECT_ROOT / "VERSION").read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    return value or None


def resolve_model_version() -> str:
    """MODEL_VERSION, else the VERSION file, else the built-in default."""
    return _env_optional("MODEL_VERSION") or read_version_file() or DEFAULT_MODEL_VERSION


@dataclass(frozen=True)
class FeatureSettings:
    """
    Windows and cache lifetime used by the Feature Adapter.

    - FORM_GAME_WINDOW: completed games used for the form snapshot
    - H2H_MEETING_WINDOW: most recent meetings used for head-to-head
    - FEATURE_CACHE_TTL_SECONDS: in-process cache lifetime (0 disables caching)
    """
    form_game_window: int = field(default_factory=lambda: _env_int("FORM_GAME_WINDOW", 10))
    h2h_meeting_window: int = field(default_factory=lambda: _env_int("H2H_MEETING_WINDOW", 10))
    cache_ttl_seconds: float = field(
        default_factory=lambda: _env_float("FEATURE_CACHE_TTL_SECONDS", 300.0)
    )


@dataclass(frozen=True)
class ValidationSettings:
    """
    Bounds on the work done by one validation run.

    - VALIDATION_LOOKBACK_DAYS: only predictions created in this window are validated
    - VALIDATION_BATCH_SIZE: maximum predictions annotated per run
    - ACCURACY_WINDOW_DAYS: trailing window for the rolling accuracy statistics
    """
    lookback_days: int = field(default_factory=lambda: _env_int("VALIDATION_LOOKBACK_DAYS", 7))
    batch_size: int = field(default_factory=lambda: _env_int("VALIDATION_BATCH_SIZE", 100))
    accuracy_window_days: int = field(default_factory=lambda: _env_int("ACCURACY_WINDOW_DAYS", 7))


@dataclass(frozen=True)
class TuningSettings:
    """
    Weight tuning policy.

    The damped step and the accuracy normalisation are heuristics kept for
    compatibility with historical weight sets; treat them as tunable policy.
    """
    lookback_days: int = field(default_factory=lambda: _env_int("TUNING_LOOKBACK_DAYS", 30))
    min_samples: int = field(default_factory=lambda: _env_int("TUNING_MIN_SAMPLES", 20))
    damping: float = field(default_factory=lambda: _env_float("TUNING_DAMPING", 0.3))
    decisive_threshold: float = field(
        default_factory=lambda: _env_float("TUNING_DECISIVE_THRESHOLD", 0.5)
    )
    weight_min: float = field(default_factory=lambda: _env_float("WEIGHT_MIN", 0.02))
    weight_max: float = field(default_factory=lambda: _env_float("WEIGHT_MAX", 0.30))
    auto_apply: bool = field(default_factory=lambda: _env_bool("WEIGHTS_AUTO_APPLY", False))


@dataclass(frozen=True)
class Settings:
    # Storage root for predictions, weight versions and run logs
    data_dir: str = field(
        default_factory=lambda: _env_optional("DATA_DIR") or str(PROJECT_ROOT / "data")
    )

    # Logging
    log_level: str = field(default_factory=lambda: (_env_optional("LOG_LEVEL") or "INFO").upper())
    log_format: str = field(default_factory=lambda: (_env_optional("LOG_FORMAT") or "text").lower())

    # Stamped on every non-fallback prediction
    model_version: str = field(default_factory=resolve_model_version)

    features: FeatureSettings = field(default_factory=FeatureSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    tuning: TuningSettings = field(default_factory=TuningSettings)

    @property
    def predictions_file(self) -> Path:
        return Path(self.data_dir) / "predictions.jsonl"

    @property
    def run_log_file(self) -> Path:
        return Path(self.data_dir) / "run_log.jsonl"

    @property
    def weights_dir(self) -> Path:
        return Path(self.data_dir) / "weights"


def load_settings() -> Settings:
    """Build a fresh Settings snapshot from the current environment."""
    return Settings()


settings = Settings()
