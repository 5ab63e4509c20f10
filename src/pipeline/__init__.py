"""Invocation triggers and the feedback-cycle pipeline."""

from src.pipeline.orchestrator import (
    Components,
    Pipeline,
    TaskResult,
    TaskStatus,
    adopt_weights,
    build_components,
    build_feedback_pipeline,
    generate_predictions,
    tune_weights,
    validate_predictions,
)

__all__ = [
    "Components",
    "Pipeline",
    "TaskResult",
    "TaskStatus",
    "adopt_weights",
    "build_components",
    "build_feedback_pipeline",
    "generate_predictions",
    "tune_weights",
    "validate_predictions",
]
