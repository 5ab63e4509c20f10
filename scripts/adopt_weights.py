"""
Adopt a saved weight set version, or list the saved versions.

Usage:
    python -m scripts.adopt_weights w20250110-040000-000000
    python -m scripts.adopt_weights --list
"""
from __future__ import annotations

import argparse
import json

from src.config import load_settings
from src.data.store import StoreError
from src.pipeline.orchestrator import adopt_weights
from src.tracking.run_log import RunLog
from src.tracking.weight_store import WeightStore
from src.utils.logging import get_logger

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Adopt a tuned weight set")
    parser.add_argument("version", nargs="?", help="Weight set version to adopt")
    parser.add_argument("--list", action="store_true", help="List saved versions and the adopted one")
    args = parser.parse_args()

    settings = load_settings()
    weight_store = WeightStore(settings.weights_dir)

    if args.list or not args.version:
        current = weight_store.current_version()
        for version in weight_store.versions() or ["default"]:
            print(f"{'*' if version == current else ' '} {version}")
        return 0

    try:
        weight_set = adopt_weights(weight_store, args.version, RunLog(settings.run_log_file))
    except StoreError as e:
        logger.error(str(e))
        return 1

    print(json.dumps(weight_set.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
