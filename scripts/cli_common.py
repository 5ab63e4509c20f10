"""
Shared plumbing for the trigger scripts.

The data store is loaded from an exported JSON snapshot (teams, players,
games, injuries). Store outages are retried here, at the trigger, never
inside the core components.
"""
from __future__ import annotations

import argparse
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.config import Settings, load_settings
from src.data.store import InMemoryDataStore, StoreUnavailableError
from src.pipeline.orchestrator import Components, build_components

store_retry = retry(
    retry=retry_if_exception_type(StoreUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--snapshot",
        type=Path,
        help="Data store snapshot JSON (default: DATA_DIR/snapshot.json)",
    )
    parser.add_argument("--as-of", help="Reference time, ISO 8601 (default: now)")


def parse_as_of(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@store_retry
def load_components(snapshot: Optional[Path], settings: Optional[Settings] = None) -> Components:
    settings = settings or load_settings()
    snapshot = snapshot or Path(settings.data_dir) / "snapshot.json"
    return build_components(InMemoryDataStore.from_json(snapshot), settings)
