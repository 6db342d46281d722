"""Trace tree nodes: the root of a trace and the steps recorded inside it."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from .layers import Layer, LayerPortions, parse_layer

if TYPE_CHECKING:
    from .recorder import Clock

T = TypeVar("T")


class TuneupError(Exception):
    """Base class for profiler errors."""


class CalculationError(TuneupError):
    """Recorded children add up to more time than their parent step."""


class UnfinishedStepError(TuneupError):
    """A step was queried before its duration was stamped."""


class StepStateError(TuneupError):
    """A step was driven through an invalid state transition."""


class StepState(str, Enum):
    UNSTARTED = "unstarted"
    OPEN = "open"
    CLOSED = "closed"


class RootStep:
    """Root of a single trace; carries no name or layer."""

    name: str | None = None
    layer: Layer | None = None
    synthetic = False

    def __init__(self, duration_ms: float | None = None) -> None:
        self.extras: dict[str, str] = {}
        self.children: list[Step] = []
        self.parent: RootStep | None = None
        self._duration_ms = duration_ms
        self._assembled = duration_ms is not None
        self._state = StepState.UNSTARTED if duration_ms is None else StepState.CLOSED
        self.portions_cache: dict[Layer, LayerPortions] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self._state.value}, children={len(self.children)})"

    @property
    def state(self) -> StepState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is StepState.CLOSED

    def ensure_closed(self) -> None:
        if self._duration_ms is None or not self.closed:
            raise UnfinishedStepError(f"{self.describe()} has not finished recording.")

    @property
    def duration_ms(self) -> float:
        self.ensure_closed()
        return self._duration_ms  # type: ignore[return-value]

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def root(self) -> RootStep:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def describe(self) -> str:
        return "root step"

    def add_child(self, child: Step) -> None:
        if self._state is not StepState.OPEN:
            raise StepStateError(f"Cannot attach {child.describe()} to {self.describe()} ({self._state.value}).")
        child.parent = self
        self.children.append(child)

    def adopt(self, *children: Step) -> RootStep:
        """Attach already-finished children to a node built with an explicit duration.

        Recorded nodes and nodes whose portions were already read stay immutable.
        """

        if not self._assembled:
            raise StepStateError(f"Cannot adopt into recorded {self.describe()}.")
        if self.portions_cache:
            raise StepStateError(f"Cannot adopt into {self.describe()} after its portions were computed.")
        for child in children:
            if not child.closed:
                raise StepStateError(f"Cannot adopt unfinished {child.describe()}.")
            if child.parent is not None:
                raise StepStateError(f"{child.describe()} already belongs to {child.parent.describe()}.")
        for child in children:
            child.parent = self
            self.children.append(child)
        return self

    def mark_open(self) -> None:
        """Transition a fresh node into the Open state."""

        if self._state is not StepState.UNSTARTED:
            raise StepStateError(f"{self.describe()} is already {self._state.value}.")
        self._state = StepState.OPEN

    def mark_closed(self, duration_ms: float) -> None:
        """Stamp the elapsed time; the node is immutable afterwards."""

        if self._state is not StepState.OPEN:
            raise StepStateError(f"{self.describe()} is not open ({self._state.value}).")
        self._duration_ms = duration_ms
        self._state = StepState.CLOSED

    @contextmanager
    def recording(self, clock: Clock | None = None) -> Iterator[RootStep]:
        """Time this trace on a fresh stack bound to the current context."""

        from .recorder import isolated_stack

        with isolated_stack(clock) as stack:
            with stack.opened(self):
                yield self

    def record(self, body: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self.recording():
            return body(*args, **kwargs)


class Step(RootStep):
    """A named, layer-tagged unit of timed work."""

    def __init__(
        self,
        name: str,
        layer: Layer | str | None = None,
        extras: Mapping[str, Any] | None = None,
        duration_ms: float | None = None,
        *,
        synthetic: bool = False,
    ) -> None:
        super().__init__(duration_ms)
        self.name = name
        self.layer = parse_layer(layer)
        self.extras = {str(key): str(value) for key, value in (extras or {}).items()}
        self.synthetic = synthetic

    def __repr__(self) -> str:
        layer = self.layer.value if self.layer else None
        return f"Step(name={self.name!r}, layer={layer!r}, state={self.state.value})"

    def describe(self) -> str:
        return f"step {self.name!r}"

    def record(self, body: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        from .recorder import current_stack

        return current_stack().record(self, body, *args, **kwargs)
