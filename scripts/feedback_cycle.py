"""
Nightly feedback cycle: validate finished games, then tune weights.

Tuning only runs when validation succeeded. The proposal is adopted only
when WEIGHTS_AUTO_APPLY=true.

Usage:
    python -m scripts.feedback_cycle --snapshot data/snapshot.json
    python -m scripts.feedback_cycle --as-of 2025-01-21T04:00 --retry-wait 5
"""
from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Dict

from scripts.cli_common import add_common_arguments, load_components, parse_as_of
from src.pipeline.orchestrator import TaskResult, TaskStatus, build_feedback_pipeline
from src.utils.logging import get_logger

logger = get_logger(__name__)


def task_report(result: TaskResult) -> Dict[str, Any]:
    output = result.output.to_dict() if hasattr(result.output, "to_dict") else result.output
    return {
        "status": result.status.value,
        "attempts": result.attempts,
        "duration_seconds": result.duration_seconds,
        "error": result.error,
        "output": output,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate completed predictions, then tune weights")
    add_common_arguments(parser)
    parser.add_argument(
        "--retry-wait",
        type=float,
        default=1.0,
        help="Base seconds between validation retries (default: 1.0)",
    )
    args = parser.parse_args()

    components = load_components(args.snapshot)
    pipeline = build_feedback_pipeline(
        components,
        as_of=parse_as_of(args.as_of),
        retry_wait_seconds=args.retry_wait,
    )
    results = asyncio.run(pipeline.run())

    print(json.dumps({name: task_report(r) for name, r in results.items()}, indent=2, default=str))
    failed = [name for name, r in results.items() if r.status != TaskStatus.SUCCESS]
    if failed:
        logger.error(f"Feedback cycle incomplete: {', '.join(failed)}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
