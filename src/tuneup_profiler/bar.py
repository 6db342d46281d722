"""Layer bar geometry: how wide each layer's segment is for a given step."""

from __future__ import annotations

from dataclasses import dataclass

from .aggregation import layer_portions, proportion
from .config import AppConfig
from .config import config as default_config
from .layers import Layer
from .steps import RootStep


@dataclass(frozen=True)
class BarSegment:
    """One layer's slice of a step's bar."""

    layer: Layer
    portion: float
    width: float
    label: str


def bar_segments(
    node: RootStep,
    cfg: AppConfig = default_config,
    *,
    width: float | None = None,
) -> list[BarSegment]:
    """Segments in model, view, controller order, scaled by the node's share of the trace.

    A segment whose layer has any time at all is never narrower than
    ``cfg.min_segment`` so it stays visible next to large neighbours.
    """

    full_width = cfg.bar_width if width is None else width
    portions = layer_portions(node, cfg.default_layer)
    scale = proportion(node)
    segments: list[BarSegment] = []
    for layer in Layer:
        portion = portions[layer]
        segment_width = portion * full_width * scale
        if portion != 0 and segment_width < cfg.min_segment:
            segment_width = cfg.min_segment
        label = layer.label[0] if segment_width >= cfg.label_min_width else ""
        segments.append(BarSegment(layer=layer, portion=portion, width=segment_width, label=label))
    return segments


def render_text_bar(segments: list[BarSegment]) -> str:
    """Render segments as a fixed-character bar (one character per width unit)."""

    parts = []
    for segment in segments:
        chars = int(round(segment.width))
        if chars <= 0:
            continue
        fill = segment.layer.value[0]
        if segment.label:
            parts.append(segment.label + fill * (chars - 1))
        else:
            parts.append(fill * chars)
    return "".join(parts)
