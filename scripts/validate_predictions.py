"""
Validate stored predictions against final scores.

Usage:
    python -m scripts.validate_predictions --snapshot data/snapshot.json
"""
from __future__ import annotations

import argparse
import asyncio
import json

from scripts.cli_common import add_common_arguments, load_components, parse_as_of, store_retry
from src.data.store import StoreUnavailableError
from src.monitoring.validator import ValidationSummary
from src.pipeline.orchestrator import validate_predictions
from src.utils.logging import get_logger

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Annotate predictions whose games have finished")
    add_common_arguments(parser)
    args = parser.parse_args()

    components = load_components(args.snapshot)

    @store_retry
    def run() -> ValidationSummary:
        summary = asyncio.run(validate_predictions(components, parse_as_of(args.as_of)))
        if not summary.success and summary.error and summary.error.startswith(StoreUnavailableError.__name__):
            raise StoreUnavailableError(summary.error)
        return summary

    try:
        summary = run()
    except StoreUnavailableError as e:
        logger.error(f"Validation gave up: {e}")
        return 2

    print(json.dumps(summary.to_dict(), indent=2, default=str))
    return 0 if summary.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
