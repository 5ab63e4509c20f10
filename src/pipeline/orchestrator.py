"""Invocation triggers for the prediction feedback loop.

Each trigger is one invocation-scoped job (predict, validate, tune, adopt);
nothing here runs in the background. The scheduler (cron, a workflow runner)
decides when to call them. The Pipeline class chains triggers with
dependencies and retries for the combined nightly feedback cycle.
"""
from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

import numpy as np
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from src.config import Settings, settings as default_settings
from src.data.records import GameStatus
from src.data.store import DataStore
from src.features.adapter import FeatureAdapter
from src.features.vector import ContextSignals
from src.monitoring.validator import PredictionValidator, ValidationSummary
from src.prediction.engine import Matchup, PredictionEngine
from src.prediction.result import PredictionError, PredictionFallback, PredictionResult
from src.prediction.weights import WeightSet
from src.tracking.run_log import PREDICTION_RUN, WEIGHT_ADOPTION, RunLog
from src.tracking.store import JsonlPredictionStore, PredictionStore
from src.tracking.weight_store import WeightStore
from src.tuning.weight_tuner import TuningResult, WeightTuner
from src.utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# COMPONENTS
# =============================================================================

@dataclass
class Components:
    """Everything a trigger needs, wired from one Settings snapshot."""
    data_store: DataStore
    prediction_store: PredictionStore
    weight_store: WeightStore
    run_log: RunLog
    settings: Settings


def build_components(data_store: DataStore, settings: Optional[Settings] = None) -> Components:
    settings = settings or default_settings
    return Components(
        data_store=data_store,
        prediction_store=JsonlPredictionStore(settings.predictions_file),
        weight_store=WeightStore(settings.weights_dir),
        run_log=RunLog(settings.run_log_file),
        settings=settings,
    )


# =============================================================================
# TRIGGERS
# =============================================================================

async def generate_predictions(
    components: Components,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    context_by_game: Optional[Mapping[str, ContextSignals]] = None,
    weights: Optional[WeightSet] = None,
    rng: Optional[np.random.Generator] = None,
    run_started: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Predict every scheduled game in [start, end] and store the records.

    Defaults to the next 24 hours. Uses the adopted weight set unless one is
    passed explicitly.

    When run_started is given, games that already have a record with the same
    weights version created at or after it are left alone, so retrying an
    interrupted run only fills in what is missing.
    """
    start = start or run_started or datetime.now(timezone.utc)
    end = end or start + timedelta(days=1)
    weights = weights or components.weight_store.current()
    context_by_game = context_by_game or {}

    adapter = FeatureAdapter(components.data_store, components.settings.features)
    engine = PredictionEngine(adapter, weights=weights, rng=rng)

    games = await components.data_store.get_games_in_range(start, end, statuses={GameStatus.SCHEDULED})
    logger.info(f"Generating predictions for {len(games)} games ({start:%Y-%m-%d %H:%M} to {end:%Y-%m-%d %H:%M})")

    already_stored = set()
    if run_started is not None:
        already_stored = {
            r.game_id for r in components.prediction_store.list_all()
            if r.weights_version == weights.version and r.created_at >= run_started
        }
        if already_stored:
            logger.info(f"{len(already_stored)} games already predicted in this run; not predicting them again")

    matchups = [
        Matchup.from_game(g, context_by_game.get(g.id))
        for g in games
        if g.id not in already_stored
    ]
    results: List[PredictionResult] = await asyncio.gather(
        *(engine.generate_prediction(m) for m in matchups)
    )

    summary: Dict[str, Any] = {
        "games": len(games),
        "predicted": 0,
        "fallback": 0,
        "errors": 0,
        "already_stored": len(games) - len(matchups),
        "weights_version": weights.version,
        "prediction_ids": [],
    }
    for matchup, result in zip(matchups, results):
        if isinstance(result, PredictionError):
            summary["errors"] += 1
            logger.warning(f"No prediction for {matchup.game_id}: {result.kind} ({result.message})")
            continue
        components.prediction_store.insert(result.record)
        summary["prediction_ids"].append(result.record.prediction_id)
        if isinstance(result, PredictionFallback):
            summary["fallback"] += 1
        else:
            summary["predicted"] += 1

    components.run_log.append(
        PREDICTION_RUN,
        f"Generated {summary['predicted'] + summary['fallback']} predictions "
        f"({summary['fallback']} fallback, {summary['errors']} errors)",
        {k: v for k, v in summary.items() if k != "prediction_ids"},
    )
    return summary


async def validate_predictions(components: Components, as_of: Optional[datetime] = None) -> ValidationSummary:
    validator = PredictionValidator(
        components.data_store,
        components.prediction_store,
        run_log=components.run_log,
        validation_settings=components.settings.validation,
    )
    return await validator.validate_completed(as_of)


def tune_weights(
    components: Components,
    lookback_days: Optional[int] = None,
    as_of: Optional[datetime] = None,
    auto_apply: Optional[bool] = None,
) -> TuningResult:
    """
    Run the tuner and, only when auto-apply is on, adopt its proposal.

    auto_apply defaults to WEIGHTS_AUTO_APPLY.
    """
    tuner = WeightTuner(
        components.prediction_store,
        weight_store=components.weight_store,
        run_log=components.run_log,
        tuning_settings=components.settings.tuning,
    )
    result = tuner.tune_weights(lookback_days=lookback_days, as_of=as_of)

    if auto_apply is None:
        auto_apply = components.settings.tuning.auto_apply
    if auto_apply and result.status == "tuned" and result.proposed_version:
        adopt_weights(components.weight_store, result.proposed_version, components.run_log)
    return result


def adopt_weights(weight_store: WeightStore, version: str, run_log: Optional[RunLog] = None) -> WeightSet:
    """Make a saved weight set the one future prediction runs use."""
    previous = weight_store.current_version()
    weight_set = weight_store.adopt(version)
    if run_log is None:
        return weight_set
    run_log.append(
        WEIGHT_ADOPTION,
        f"Adopted weight set {version}",
        {"version": version, "previous_version": previous, "weights": weight_set.weights},
    )
    return weight_set


# =============================================================================
# PIPELINE
# =============================================================================

class TaskStatus(Enum):
    """Status of a pipeline task."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TaskResult:
    """Result of a pipeline task execution."""
    name: str
    status: TaskStatus
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    attempts: int = 0
    error: Optional[str] = None
    output: Optional[Any] = None


@dataclass
class Task:
    """A task in the pipeline."""
    name: str
    func: Callable
    dependencies: List[str] = field(default_factory=list)
    max_retries: int = 2
    continue_on_failure: bool = False


class Pipeline:
    """
    Runs tasks in dependency order with retries.

    A task whose dependency failed is skipped; a failed task without
    continue_on_failure stops the pipeline.
    """

    def __init__(self, name: str, retry_wait_seconds: float = 1.0):
        self.name = name
        self.retry_wait_seconds = retry_wait_seconds
        self.tasks: Dict[str, Task] = {}
        self.results: Dict[str, TaskResult] = {}

    def add_task(
        self,
        name: str,
        func: Callable,
        dependencies: Optional[List[str]] = None,
        max_retries: int = 2,
        continue_on_failure: bool = False,
    ) -> Task:
        """Add a task; func may be sync or async and takes no arguments."""
        unknown = [d for d in (dependencies or []) if d not in self.tasks]
        if unknown:
            raise ValueError(f"Task {name} depends on unknown tasks: {unknown}")
        task = Task(
            name=name,
            func=func,
            dependencies=dependencies or [],
            max_retries=max_retries,
            continue_on_failure=continue_on_failure,
        )
        self.tasks[name] = task
        return task

    async def _call(self, task: Task) -> Any:
        if inspect.iscoroutinefunction(task.func):
            return await task.func()
        return task.func()

    async def _execute_task(self, task: Task) -> TaskResult:
        started = datetime.now(timezone.utc)
        result = TaskResult(name=task.name, status=TaskStatus.RUNNING, started_at=started.isoformat())
        logger.info(f"Starting task: {task.name}")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(task.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=30 * self.retry_wait_seconds),
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    result.attempts = attempt.retry_state.attempt_number
                    result.output = await self._call(task)
            result.status = TaskStatus.SUCCESS
        except RetryError as e:
            error = e.last_attempt.exception()
            result.status = TaskStatus.FAILED
            result.error = f"{type(error).__name__}: {error}"
            logger.error(f"Task {task.name} failed after {result.attempts} attempts: {error}")

        completed = datetime.now(timezone.utc)
        result.completed_at = completed.isoformat()
        result.duration_seconds = (completed - started).total_seconds()
        return result

    async def run(self) -> Dict[str, TaskResult]:
        logger.info(f"Starting pipeline: {self.name} ({', '.join(self.tasks)})")
        stopped = False

        # add_task only accepts known dependencies, so insertion order is a valid order
        for task in self.tasks.values():
            if stopped:
                self.results[task.name] = TaskResult(
                    name=task.name,
                    status=TaskStatus.SKIPPED,
                    error="Pipeline stopped due to critical failure",
                )
                continue

            blocked = [
                d for d in task.dependencies
                if self.results[d].status not in (TaskStatus.SUCCESS,)
            ]
            if blocked:
                self.results[task.name] = TaskResult(
                    name=task.name,
                    status=TaskStatus.SKIPPED,
                    error=f"Blocked by: {', '.join(blocked)}",
                )
                continue

            result = await self._execute_task(task)
            self.results[task.name] = result
            if result.status == TaskStatus.FAILED and not task.continue_on_failure:
                logger.error(f"Critical task failed: {task.name}. Stopping pipeline.")
                stopped = True

        self._log_summary()
        return self.results

    def _log_summary(self) -> None:
        counts = {status: 0 for status in TaskStatus}
        for result in self.results.values():
            counts[result.status] += 1
        logger.info(
            f"Pipeline {self.name}: {len(self.tasks)} tasks, {counts[TaskStatus.SUCCESS]} succeeded, "
            f"{counts[TaskStatus.FAILED]} failed, {counts[TaskStatus.SKIPPED]} skipped"
        )
        for name, result in self.results.items():
            if result.error:
                logger.info(f"  {name}: {result.status.value} ({result.error})")


def _require_success(summary: ValidationSummary) -> ValidationSummary:
    if not summary.success:
        raise RuntimeError(summary.error or "validation failed")
    return summary


def build_feedback_pipeline(
    components: Components,
    as_of: Optional[datetime] = None,
    retry_wait_seconds: float = 1.0,
) -> Pipeline:
    """validate -> tune (auto-adopt only when WEIGHTS_AUTO_APPLY is set)."""
    pipeline = Pipeline("feedback_cycle", retry_wait_seconds=retry_wait_seconds)

    async def validate() -> ValidationSummary:
        return _require_success(await validate_predictions(components, as_of))

    pipeline.add_task("validate_predictions", validate)
    pipeline.add_task(
        "tune_weights",
        lambda: tune_weights(components, as_of=as_of),
        dependencies=["validate_predictions"],
        max_retries=0,
    )
    return pipeline
