"""Runtime configuration and environment helpers for the profiler."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .layers import Layer

_DEFAULT_LAYER = Layer.CONTROLLER
_DEFAULT_BAR_WIDTH = 200
_DEFAULT_MIN_SEGMENT = 1.0
_DEFAULT_LABEL_MIN_WIDTH = 12.0
_DEFAULT_CALLER_DEPTH = 5
_DEFAULT_MAX_TRACES = 10


@dataclass(frozen=True)
class AppConfig:
    """Immutable profiler configuration."""

    enabled: bool
    default_layer: Layer
    bar_width: int
    min_segment: float
    label_min_width: float
    capture_callers: bool
    caller_depth: int
    validate_exports: bool
    max_traces: int


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    return value.lower() in {"1", "true", "yes", "on"}

def _parse_int(value: str | None, fallback: int, *, minimum: int = 1) -> int:
    if value is None:
        return fallback
    try:
        parsed = int(value)
    except ValueError:
        return fallback
    return fallback if parsed < minimum else parsed


def _parse_float(value: str | None, fallback: float, *, minimum: float | None = None) -> float:
    if value is None:
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    if minimum is not None and parsed < minimum:
        return fallback
    return parsed


def _parse_layer(value: str | None, fallback: Layer) -> Layer:
    if value is None:
        return fallback
    try:
        return Layer(value.strip().lower())
    except ValueError:
        return fallback


def load_config() -> AppConfig:
    """Load configuration from environment variables, applying defaults."""

    return AppConfig(
        enabled=_parse_bool(os.getenv("TUNEUP_ENABLED"), True),
        default_layer=_parse_layer(os.getenv("TUNEUP_DEFAULT_LAYER"), _DEFAULT_LAYER),
        bar_width=_parse_int(os.getenv("TUNEUP_BAR_WIDTH"), _DEFAULT_BAR_WIDTH, minimum=1),
        min_segment=_parse_float(os.getenv("TUNEUP_MIN_SEGMENT"), _DEFAULT_MIN_SEGMENT, minimum=0.0),
        label_min_width=_parse_float(
            os.getenv("TUNEUP_LABEL_MIN_WIDTH"),
            _DEFAULT_LABEL_MIN_WIDTH,
            minimum=0.0,
        ),
        capture_callers=_parse_bool(os.getenv("TUNEUP_CAPTURE_CALLERS"), False),
        caller_depth=_parse_int(os.getenv("TUNEUP_CALLER_DEPTH"), _DEFAULT_CALLER_DEPTH, minimum=0),
        validate_exports=_parse_bool(os.getenv("TUNEUP_VALIDATE_EXPORTS"), False),
        max_traces=_parse_int(os.getenv("TUNEUP_MAX_TRACES"), _DEFAULT_MAX_TRACES, minimum=1),
    )


config = load_config()
"""Singleton config loaded at import time for convenience."""
