"""
Prediction outcome validation.

Scans unvalidated predictions whose games have concluded, annotates each with
the actual result exactly once, and recomputes rolling accuracy.

Anti-double-counting:
1. Only predictions with no validated_at are selected
2. The store rejects a second annotation (AlreadyValidatedError -> skipped)
3. Rolling statistics are recomputed from the store, never incremented
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from src.config import ValidationSettings
from src.data.records import GameRecord
from src.data.store import DataStore, StoreError, StoreUnavailableError
from src.monitoring.accuracy import rolling_accuracy
from src.tracking.records import TIE, OutcomeAnnotation, PredictionRecord
from src.tracking.run_log import PREDICTION_VALIDATION, PREDICTION_VALIDATION_ERROR, RunLog
from src.tracking.store import AlreadyValidatedError, PredictionStore
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationSummary:
    success: bool
    validated: int = 0
    correct: int = 0
    incorrect: int = 0
    skipped: int = 0
    rolling_stats: Dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0
    error: Optional[str] = None

    @property
    def accuracy_pct(self) -> float:
        """Accuracy of the predictions validated in this run."""
        if self.validated == 0:
            return 0.0
        return round(100.0 * self.correct / self.validated, 2)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["accuracy_pct"] = self.accuracy_pct
        return data


def compute_outcome(record: PredictionRecord, game: GameRecord, validated_at: datetime) -> OutcomeAnnotation:
    """
    Compare a prediction with the final score.

    A tie is never counted as correct.
    """
    home_score = float(game.home_score)
    away_score = float(game.away_score)

    if home_score > away_score:
        actual_outcome = record.home_team_id
    elif away_score > home_score:
        actual_outcome = record.away_team_id
    else:
        actual_outcome = TIE

    actual_spread = home_score - away_score
    return OutcomeAnnotation(
        actual_outcome=actual_outcome,
        was_correct=actual_outcome != TIE and actual_outcome == record.predicted_winner,
        margin_of_error=round(abs(actual_spread - record.predicted_spread), 2),
        validated_at=validated_at,
        actual_home_score=home_score,
        actual_away_score=away_score,
    )


class PredictionValidator:
    """
    Reconciles stored predictions with real results.

    Usage:
        validator = PredictionValidator(data_store, prediction_store, run_log)
        summary = await validator.validate_completed()
    """

    def __init__(
        self,
        data_store: DataStore,
        prediction_store: PredictionStore,
        run_log: Optional[RunLog] = None,
        validation_settings: Optional[ValidationSettings] = None,
    ):
        self.data_store = data_store
        self.prediction_store = prediction_store
        self.run_log = run_log
        self.settings = validation_settings or ValidationSettings()

    async def validate_completed(self, as_of: Optional[datetime] = None) -> ValidationSummary:
        as_of = as_of or datetime.now(timezone.utc)
        started = time.perf_counter()
        summary = ValidationSummary(success=True)

        try:
            pending = self.prediction_store.list_pending(
                created_after=as_of - timedelta(days=self.settings.lookback_days),
            )
            logger.info(f"Checking {len(pending)} pending predictions")

            # Only predictions whose game has finished count against the batch
            attempted = 0
            for record in pending:
                if attempted >= self.settings.batch_size:
                    break
                game = await self._finished_game(record)
                if game is None:
                    summary.skipped += 1
                    continue
                attempted += 1
                outcome = self._annotate(record, game, as_of)
                if outcome is None:
                    summary.skipped += 1
                    continue
                summary.validated += 1
                if outcome.was_correct:
                    summary.correct += 1
                else:
                    summary.incorrect += 1

            stats = rolling_accuracy(
                self.prediction_store.list_validated(),
                as_of=as_of,
                window_days=self.settings.accuracy_window_days,
            )
            summary.rolling_stats = stats.to_dict()
        except StoreError as e:
            summary.success = False
            summary.error = f"{type(e).__name__}: {e}"
            summary.duration_ms = int((time.perf_counter() - started) * 1000)
            logger.error(f"Prediction validation failed: {summary.error}")
            self._log_run(PREDICTION_VALIDATION_ERROR, f"Validation failed: {e}", summary)
            return summary

        summary.duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Validated {summary.validated} predictions: {summary.correct} correct, "
            f"{summary.incorrect} incorrect, {summary.skipped} skipped "
            f"({summary.accuracy_pct:.1f}% this run)"
        )
        self._log_run(
            PREDICTION_VALIDATION,
            f"Validated {summary.validated} predictions ({summary.accuracy_pct:.1f}% accuracy)",
            summary,
        )
        return summary

    async def _finished_game(self, record: PredictionRecord) -> Optional[GameRecord]:
        """The record's game when it is final with scores, else None."""
        try:
            game = await self.data_store.get_game(record.game_id)
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.warning(f"Skipping prediction {record.prediction_id} (game {record.game_id}): {e}")
            return None
        if game is None or not game.is_terminal or not game.has_scores:
            return None
        return game

    def _annotate(self, record: PredictionRecord, game: GameRecord, as_of: datetime) -> Optional[OutcomeAnnotation]:
        """Annotate one record; None means it was skipped."""
        try:
            outcome = compute_outcome(record, game, validated_at=as_of)
            self.prediction_store.annotate_outcome(record.prediction_id, outcome)
            return outcome
        except AlreadyValidatedError:
            logger.info(f"Prediction {record.prediction_id} was already validated; skipping")
            return None
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.warning(f"Skipping prediction {record.prediction_id} (game {record.game_id}): {e}")
            return None

    def _log_run(self, log_type: str, message: str, summary: ValidationSummary) -> None:
        if self.run_log is None:
            return
        try:
            self.run_log.append(log_type, message, summary.to_dict())
        except StoreError as e:
            logger.error(f"Could not write run log entry: {e}")
