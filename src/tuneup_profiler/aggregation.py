"""Read-only metrics derived from a finished trace tree.

Every function here requires the queried node to be closed; reading the
duration of an open node raises :class:`UnfinishedStepError`.
"""

from __future__ import annotations

from .config import config
from .layers import Layer, LayerPortions, empty_portions
from .steps import CalculationError, RootStep, Step

OTHER_STEP_NAME = "(Other)"
_TOLERANCE_MS = 1e-9


def disparity(node: RootStep) -> float:
    """Time spent directly in ``node`` that no recorded child accounts for."""

    children_ms = sum(child.duration_ms for child in node.children)
    result = node.duration_ms - children_ms
    if result < 0:
        if result > -_TOLERANCE_MS:
            return 0.0
        raise CalculationError(
            f"Child steps exceed parent step size: {node.describe()} took {node.duration_ms:.3f}ms "
            f"but its children took {children_ms:.3f}ms."
        )
    return result


def children_with_disparity(node: RootStep) -> list[Step]:
    """Children of ``node`` followed by a synthetic "(Other)" entry for its disparity."""

    node.ensure_closed()
    if not node.children:
        return []
    other = Step(OTHER_STEP_NAME, node.layer, {}, disparity(node), synthetic=True)
    other.parent = node.parent if node.parent is not None else node
    return [*node.children, other]


def effective_layer(node: RootStep, default_layer: Layer) -> Layer:
    """The node's layer, else the nearest classified ancestor's, else ``default_layer``."""

    current: RootStep | None = node
    while current is not None:
        if current.layer is not None:
            return current.layer
        current = current.parent
    return default_layer


def layer_portions(node: RootStep, default_layer: Layer | None = None) -> LayerPortions:
    """Fraction of ``node``'s own time attributable to each layer."""

    if default_layer is None:
        default_layer = config.default_layer

    cached = node.portions_cache.get(default_layer)
    if cached is None:
        cached = _compute_portions(node, default_layer)
        node.portions_cache[default_layer] = cached
    return dict(cached)


def _compute_portions(node: RootStep, default_layer: Layer) -> LayerPortions:
    result = empty_portions()
    own_layer = effective_layer(node, default_layer)
    total = node.duration_ms
    if not node.children or total <= 0:
        result[own_layer] = 1.0
        return result

    totals = empty_portions()
    for child in node.children:
        totals[effective_layer(child, default_layer)] += child.duration_ms
    totals[own_layer] += disparity(node)

    for layer, elapsed in totals.items():
        result[layer] = elapsed / total
    return result


def proportion(node: RootStep) -> float:
    """Share of the whole trace's time that ``node`` represents."""

    node_ms = node.duration_ms
    root = node.root
    if node is root:
        return 1.0
    root_ms = root.duration_ms
    if root_ms <= 0:
        return 0.0
    return node_ms / root_ms
