"""
Run log for scheduled jobs.

Every prediction, validation and tuning run appends one entry, so job history
survives process restarts independently of the stdout logs.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

from src.data.store import StoreUnavailableError
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Known entry types
PREDICTION_RUN = "prediction_run"
PREDICTION_VALIDATION = "prediction_validation"
PREDICTION_VALIDATION_ERROR = "prediction_validation_error"
WEIGHT_TUNING = "weight_tuning"
WEIGHT_ADOPTION = "weight_adoption"


@dataclass
class RunLogEntry:
    log_type: str
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)


class RunLog:
    """Append-only JSONL run log."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()

    def append(self, log_type: str, message: str, metadata: Optional[Dict[str, Any]] = None) -> RunLogEntry:
        entry = RunLogEntry(log_type=log_type, message=message, metadata=metadata or {})
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(asdict(entry), default=str) + "\n")
            except OSError as e:
                raise StoreUnavailableError(f"Cannot append to run log {self.path}: {e}") from e
        logger.debug(f"Run log [{log_type}] {message}")
        return entry

    def entries(self, log_type: Optional[str] = None) -> List[RunLogEntry]:
        if not self.path.exists():
            return []
        result = []
        with self._lock:
            with open(self.path, "r", encoding="utf-8") as f:
                for line in f:
                    if not line.strip():
                        continue
                    entry = RunLogEntry(**json.loads(line))
                    if log_type is None or entry.log_type == log_type:
                        result.append(entry)
        return result
