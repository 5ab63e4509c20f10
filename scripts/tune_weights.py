"""
Propose new factor weights from validated predictions.

The proposal is saved as a new weight set version. It is adopted only with
--apply (or WEIGHTS_AUTO_APPLY=true).

Usage:
    python -m scripts.tune_weights --lookback-days 30
    python -m scripts.tune_weights --apply
"""
from __future__ import annotations

import argparse
import json

from scripts.cli_common import add_common_arguments, load_components, parse_as_of
from src.pipeline.orchestrator import tune_weights
from src.utils.logging import get_logger

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Tune ensemble factor weights")
    add_common_arguments(parser)
    parser.add_argument("--lookback-days", type=int, help="Window of validated predictions (default: TUNING_LOOKBACK_DAYS)")
    parser.add_argument("--apply", action="store_true", help="Adopt the proposal immediately")
    args = parser.parse_args()

    components = load_components(args.snapshot)
    result = tune_weights(
        components,
        lookback_days=args.lookback_days,
        as_of=parse_as_of(args.as_of),
        auto_apply=True if args.apply else None,
    )

    print(json.dumps(result.to_dict(), indent=2, default=str))
    if result.status == "tuned":
        logger.info(f"Proposed version {result.proposed_version}; adopt with: adopt-weights {result.proposed_version}")
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
