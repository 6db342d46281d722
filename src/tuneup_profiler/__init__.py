"""Tuneup Profiler package."""

from .aggregation import children_with_disparity, disparity, layer_portions, proportion
from .layers import Layer
from .recorder import RecordingStack, current_stack, profile, profiling, reset, step, timed
from .steps import (
    CalculationError,
    RootStep,
    Step,
    StepState,
    StepStateError,
    TuneupError,
    UnfinishedStepError,
)

__all__ = [
    "CalculationError",
    "Layer",
    "RecordingStack",
    "RootStep",
    "Step",
    "StepState",
    "StepStateError",
    "TuneupError",
    "UnfinishedStepError",
    "children_with_disparity",
    "current_stack",
    "disparity",
    "layer_portions",
    "profile",
    "profiling",
    "proportion",
    "reset",
    "step",
    "timed",
]
