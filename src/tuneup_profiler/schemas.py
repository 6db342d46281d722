"""Pydantic models describing the structured export of a finished trace."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .aggregation import children_with_disparity, layer_portions, proportion
from .layers import Layer
from .steps import RootStep, Step


class StepExport(BaseModel):
    """One exported step, with its "(Other)" bucket listed among its children."""

    name: str = Field(..., description="Human-readable step label.")
    layer: Layer | None = Field(default=None, description="Layer tag; null for container steps.")
    extras: dict[str, str] = Field(default_factory=dict, description="Display-only annotations.")
    time: float = Field(..., ge=0, description="Elapsed time in milliseconds.")
    synthetic: bool = Field(default=False, description="True for the generated (Other) bucket.")
    proportion: float = Field(..., ge=0, description="Share of the whole trace's time.")
    layer_portions: dict[Layer, float] = Field(..., description="Per-layer fraction of this step's time.")
    children: list[StepExport] = Field(default_factory=list)


class TraceExport(BaseModel):
    """Exported root of a trace; carries no name or layer."""

    time: float = Field(..., ge=0, description="Total elapsed time in milliseconds.")
    layer_portions: dict[Layer, float]
    children: list[StepExport] = Field(default_factory=list)


class APIError(BaseModel):
    """Standardized API error payload."""

    error_type: str
    message: str
    details: dict[str, Any] | None = None


def export_trace(root: RootStep, default_layer: Layer | None = None) -> TraceExport:
    """Convert a finished trace into its structured export."""

    return TraceExport(
        time=root.duration_ms,
        layer_portions=layer_portions(root, default_layer),
        children=[export_step(child, default_layer) for child in root.children],
    )


def export_step(node: Step, default_layer: Layer | None = None) -> StepExport:
    return StepExport(
        name=node.name or "",
        layer=node.layer,
        extras=dict(node.extras),
        time=node.duration_ms,
        synthetic=node.synthetic,
        proportion=proportion(node),
        layer_portions=layer_portions(node, default_layer),
        children=[export_step(child, default_layer) for child in children_with_disparity(node)],
    )


def load_trace(payload: TraceExport | dict[str, Any]) -> RootStep:
    """Rebuild a finished tree from an export, dropping synthetic "(Other)" entries."""

    trace = payload if isinstance(payload, TraceExport) else TraceExport.model_validate(payload)
    root = RootStep(duration_ms=trace.time)
    root.adopt(*[_load_step(child) for child in trace.children if not child.synthetic])
    return root


def _load_step(exported: StepExport) -> Step:
    node = Step(exported.name, exported.layer, exported.extras, exported.time)
    node.adopt(*[_load_step(child) for child in exported.children if not child.synthetic])
    return node
