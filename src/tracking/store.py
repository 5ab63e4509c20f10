"""
Prediction Store - append-only prediction history.

Records are written once, when the engine finishes a matchup, and are never
deleted. The only mutation is the outcome annotation, which the store accepts
exactly once per record:

1. Predictions are inserted with their creation timestamp before any outcome
   is known
2. annotate_outcome() checks the unset-validated_at precondition under a lock
3. A second annotation raises AlreadyValidatedError instead of overwriting
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from src.data.store import StoreError, StoreUnavailableError
from src.tracking.records import OutcomeAnnotation, PredictionRecord
from src.utils.logging import get_logger

logger = get_logger(__name__)


class AlreadyValidatedError(StoreError):
    """Raised when an outcome is written to a record that already has one."""
    pass


class PredictionNotFoundError(StoreError):
    pass


class PredictionStore(ABC):
    """Persistence surface for prediction records."""

    @abstractmethod
    def insert(self, record: PredictionRecord) -> PredictionRecord:
        ...

    @abstractmethod
    def get(self, prediction_id: str) -> Optional[PredictionRecord]:
        ...

    @abstractmethod
    def list_all(self) -> List[PredictionRecord]:
        ...

    @abstractmethod
    def annotate_outcome(self, prediction_id: str, outcome: OutcomeAnnotation) -> PredictionRecord:
        """Attach the actual outcome; raises AlreadyValidatedError on a second call."""
        ...

    def list_pending(
        self,
        created_after: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[PredictionRecord]:
        """Unvalidated predictions, oldest first."""
        pending = [
            r for r in self.list_all()
            if not r.is_validated and (created_after is None or r.created_at >= created_after)
        ]
        pending.sort(key=lambda r: r.created_at)
        return pending[:limit] if limit is not None else pending

    def list_validated(
        self,
        validated_after: Optional[datetime] = None,
        include_fallback: bool = True,
    ) -> List[PredictionRecord]:
        validated = [
            r for r in self.list_all()
            if r.is_validated
            and (validated_after is None or r.validated_at >= validated_after)
            and (include_fallback or not r.is_fallback)
        ]
        validated.sort(key=lambda r: r.validated_at)
        return validated


class InMemoryPredictionStore(PredictionStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self):
        self._records: Dict[str, PredictionRecord] = {}
        self._lock = Lock()

    def insert(self, record: PredictionRecord) -> PredictionRecord:
        with self._lock:
            if record.prediction_id in self._records:
                raise StoreError(f"Prediction {record.prediction_id} already exists")
            self._records[record.prediction_id] = record
        return record

    def get(self, prediction_id: str) -> Optional[PredictionRecord]:
        return self._records.get(prediction_id)

    def list_all(self) -> List[PredictionRecord]:
        with self._lock:
            return list(self._records.values())

    def annotate_outcome(self, prediction_id: str, outcome: OutcomeAnnotation) -> PredictionRecord:
        with self._lock:
            record = self._records.get(prediction_id)
            if record is None:
                raise PredictionNotFoundError(f"No prediction {prediction_id}")
            if record.is_validated:
                raise AlreadyValidatedError(f"Prediction {prediction_id} already validated")
            updated = record.with_outcome(outcome)
            self._records[prediction_id] = updated
        return updated


class JsonlPredictionStore(PredictionStore):
    """
    Prediction history in a JSONL file, one record per line.

    Usage:
        store = JsonlPredictionStore(settings.predictions_file)
        store.insert(result.record)

        # Later, from the validator
        store.annotate_outcome(record.prediction_id, outcome)
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot create prediction store at {self.path.parent}: {e}") from e

    def _read(self) -> List[PredictionRecord]:
        if not self.path.exists():
            return []
        records = []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        records.append(PredictionRecord.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        logger.warning(f"Skipping corrupt line {line_no} in {self.path}: {e}")
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {self.path}: {e}") from e
        return records

    def _rewrite(self, records: List[PredictionRecord]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(record.to_dict()) + "\n")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write {self.path}: {e}") from e

    def insert(self, record: PredictionRecord) -> PredictionRecord:
        with self._lock:
            if any(r.prediction_id == record.prediction_id for r in self._read()):
                raise StoreError(f"Prediction {record.prediction_id} already exists")
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record.to_dict()) + "\n")
            except OSError as e:
                raise StoreUnavailableError(f"Cannot append to {self.path}: {e}") from e

        logger.info(
            f"Recorded prediction {record.prediction_id}: game {record.game_id} -> "
            f"{record.predicted_winner}{' (fallback)' if record.is_fallback else ''}"
        )
        return record

    def get(self, prediction_id: str) -> Optional[PredictionRecord]:
        with self._lock:
            for record in self._read():
                if record.prediction_id == prediction_id:
                    return record
        return None

    def list_all(self) -> List[PredictionRecord]:
        with self._lock:
            return self._read()

    def annotate_outcome(self, prediction_id: str, outcome: OutcomeAnnotation) -> PredictionRecord:
        """
        Attach an outcome. Reads all records, updates the match and rewrites
        the file; the prediction fields themselves are never modified.
        """
        with self._lock:
            records = self._read()
            for index, record in enumerate(records):
                if record.prediction_id != prediction_id:
                    continue
                if record.is_validated:
                    raise AlreadyValidatedError(f"Prediction {prediction_id} already validated")
                updated = record.with_outcome(outcome)
                records[index] = updated
                self._rewrite(records)
                return updated
        raise PredictionNotFoundError(f"No prediction {prediction_id}")
