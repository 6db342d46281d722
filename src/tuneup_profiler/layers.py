"""Layer classification tags assigned to recorded steps."""

from __future__ import annotations

from enum import Enum


class Layer(str, Enum):
    """Closed set of layers a step's time can be attributed to."""

    MODEL = "model"
    VIEW = "view"
    CONTROLLER = "controller"

    @property
    def label(self) -> str:
        return self.value.capitalize()


LayerPortions = dict[Layer, float]


def empty_portions() -> LayerPortions:
    """Return a portions map holding every layer at 0.0."""

    return {layer: 0.0 for layer in Layer}


def parse_layer(value: str | Layer | None) -> Layer | None:
    """Normalize user input into a Layer; None stays unclassified."""

    if value is None or isinstance(value, Layer):
        return value
    normalized = value.strip().lower()
    if not normalized:
        return None
    try:
        return Layer(normalized)
    except ValueError as exc:
        choices = ", ".join(layer.value for layer in Layer)
        raise ValueError(f"Unknown layer {value!r}; expected one of: {choices}.") from exc
