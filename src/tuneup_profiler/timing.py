"""Absolute per-layer timing summaries used for logging and benchmarks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .aggregation import layer_portions
from .layers import Layer
from .steps import RootStep


@dataclass
class LayerTimings:
    """Tracks elapsed time (ms) attributed to each layer of a trace."""

    model_ms: float = 0.0
    view_ms: float = 0.0
    controller_ms: float = 0.0

    @property
    def total_ms(self) -> float:
        return self.model_ms + self.view_ms + self.controller_ms

    def as_dict(self) -> dict[str, float]:
        return {
            "model_ms": self.model_ms,
            "view_ms": self.view_ms,
            "controller_ms": self.controller_ms,
            "total_ms": self.total_ms,
        }


def summarize_trace(root: RootStep, default_layer: Layer | None = None) -> LayerTimings:
    """Scale the root's layer portions back into milliseconds."""

    portions = layer_portions(root, default_layer)
    total = root.duration_ms
    return LayerTimings(
        model_ms=portions[Layer.MODEL] * total,
        view_ms=portions[Layer.VIEW] * total,
        controller_ms=portions[Layer.CONTROLLER] * total,
    )


def summarize_timings(timings: Iterable[LayerTimings]) -> LayerTimings:
    summary = LayerTimings()
    for item in timings:
        summary.model_ms += item.model_ms
        summary.view_ms += item.view_ms
        summary.controller_ms += item.controller_ms
    return summary


def count_steps(root: RootStep) -> int:
    """Number of recorded (non-root) steps in the tree."""

    pending = list(root.children)
    total = 0
    while pending:
        node = pending.pop()
        total += 1
        pending.extend(node.children)
    return total


def format_ms(duration_ms: float) -> str:
    return f"{duration_ms:.1f}ms"
