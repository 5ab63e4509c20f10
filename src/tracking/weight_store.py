"""
Weight set versions on disk.

Layout under the weights directory:
    weights/<version>.json   one file per saved weight set
    weights/current.json     {"version": "...", "adopted_at": "..."}

Saving a weight set never changes what the engine uses; only adopt() does.
With no adopted version, current() is the built-in default set.
"""
from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import List, Optional

from src.data.store import StoreError, StoreUnavailableError
from src.prediction.weights import DEFAULT_VERSION, WeightSet
from src.utils.logging import get_logger

logger = get_logger(__name__)

_VERSION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
CURRENT_POINTER = "current.json"


class WeightStore:
    def __init__(self, weights_dir: Path):
        self.weights_dir = Path(weights_dir)
        self._lock = Lock()
        try:
            self.weights_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot create weights dir {self.weights_dir}: {e}") from e

    def _path(self, version: str) -> Path:
        if not _VERSION_RE.match(version) or version == "current":
            raise StoreError(f"Invalid weight set version: {version!r}")
        return self.weights_dir / f"{version}.json"

    @staticmethod
    def new_version(now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        return now.strftime("w%Y%m%d-%H%M%S-%f")

    def versions(self) -> List[str]:
        return sorted(p.stem for p in self.weights_dir.glob("*.json") if p.name != CURRENT_POINTER)

    def get(self, version: str) -> WeightSet:
        if version == DEFAULT_VERSION and not self._path(version).exists():
            return WeightSet.default()
        path = self._path(version)
        if not path.exists():
            raise StoreError(f"Unknown weight set version: {version}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return WeightSet.from_dict(json.load(f))
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {path}: {e}") from e

    def save(self, weight_set: WeightSet) -> WeightSet:
        path = self._path(weight_set.version)
        with self._lock:
            if path.exists():
                raise StoreError(f"Weight set version {weight_set.version} already exists")
            try:
                with open(path, "w", encoding="utf-8") as f:
                    json.dump(weight_set.to_dict(), f, indent=2)
            except OSError as e:
                raise StoreUnavailableError(f"Cannot write {path}: {e}") from e
        logger.info(f"Saved weight set {weight_set.version} (source={weight_set.source})")
        return weight_set

    def current_version(self) -> str:
        pointer = self.weights_dir / CURRENT_POINTER
        if not pointer.exists():
            return DEFAULT_VERSION
        try:
            with open(pointer, "r", encoding="utf-8") as f:
                return json.load(f).get("version", DEFAULT_VERSION)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {pointer}: {e}") from e

    def current(self) -> WeightSet:
        """The adopted weight set, or the defaults when nothing was adopted."""
        return self.get(self.current_version())

    def adopt(self, version: str) -> WeightSet:
        """Make a saved version the one the engine runs with."""
        weight_set = self.get(version)
        pointer = self.weights_dir / CURRENT_POINTER
        with self._lock:
            previous = self.current_version()
            try:
                with open(pointer, "w", encoding="utf-8") as f:
                    json.dump(
                        {"version": version, "adopted_at": datetime.now(timezone.utc).isoformat()},
                        f,
                    )
            except OSError as e:
                raise StoreUnavailableError(f"Cannot write {pointer}: {e}") from e
        logger.info(f"Adopted weight set {version} (previous: {previous})")
        return weight_set
