"""Context-local recording stack that nests steps into a trace tree."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from time import perf_counter
from typing import Any, TypeVar

from .callsite import capture_caller
from .config import config
from .layers import Layer
from .steps import RootStep, Step, StepStateError

logger = logging.getLogger("tuneup_profiler.recorder")

Clock = Callable[[], float]
T = TypeVar("T")

_active_stack: ContextVar[RecordingStack | None] = ContextVar("tuneup_recording_stack", default=None)


class RecordingStack:
    """LIFO of currently open steps for one logical thread of execution."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or perf_counter
        self._open: list[RootStep] = []

    def __len__(self) -> int:
        return len(self._open)

    @property
    def depth(self) -> int:
        return len(self._open)

    @property
    def current(self) -> RootStep | None:
        return self._open[-1] if self._open else None

    def reset(self) -> None:
        """Forget every open step."""

        self._open.clear()

    @contextmanager
    def opened(self, step: RootStep) -> Iterator[RootStep]:
        step.mark_open()
        parent = self.current
        if parent is not None:
            parent.add_child(step)
        self._open.append(step)
        start = self._clock()
        failed = False
        try:
            yield step
        except BaseException:
            failed = True
            raise
        finally:
            step.mark_closed((self._clock() - start) * 1000)
            orphaned = self._pop(step)
            if orphaned and failed:
                logger.warning(
                    "discarded %d orphaned step(s) while unwinding %s",
                    len(orphaned),
                    step.describe(),
                )
        if orphaned:
            names = ", ".join(node.describe() for node in orphaned)
            raise StepStateError(f"{step.describe()} closed with orphaned open step(s): {names}.")

    def record(self, step: RootStep, body: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self.opened(step):
            return body(*args, **kwargs)

    def _pop(self, step: RootStep) -> list[RootStep]:
        """Unwind ``step`` and anything opened above it; return the latter."""

        if self._open and self._open[-1] is step:
            self._open.pop()
            return []
        for index in range(len(self._open) - 1, -1, -1):
            if self._open[index] is step:
                orphaned = self._open[index + 1 :]
                del self._open[index:]
                return orphaned
        # The stack was reset while this step was open; nothing left to unwind.
        return []


def current_stack() -> RecordingStack:
    """Return the stack bound to the current thread/task, creating it on first use."""

    stack = _active_stack.get()
    if stack is None:
        stack = RecordingStack()
        _active_stack.set(stack)
    return stack


def reset(clock: Clock | None = None) -> RecordingStack:
    """Bind a fresh, empty stack to the current context and return it."""

    stack = RecordingStack(clock)
    _active_stack.set(stack)
    return stack


@contextmanager
def isolated_stack(clock: Clock | None = None) -> Iterator[RecordingStack]:
    """Bind a fresh stack for the duration of the block, then restore the previous one."""

    stack = RecordingStack(clock)
    token = _active_stack.set(stack)
    try:
        yield stack
    finally:
        _active_stack.reset(token)


@contextmanager
def step(
    name: str,
    layer: Layer | str | None = None,
    extras: Mapping[str, Any] | None = None,
) -> Iterator[Step]:
    """Record the enclosed block as a child of whatever step is currently open."""

    payload = dict(extras or {})
    if config.capture_callers and "caller" not in payload:
        payload["caller"] = capture_caller(config.caller_depth)
    node = Step(name, layer, payload)
    with current_stack().opened(node):
        yield node


def timed(
    name: str | None = None,
    layer: Layer | str | None = None,
    extras: Mapping[str, Any] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`step`; defaults the name to the function's qualname."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        step_name = name or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with step(step_name, layer, extras):
                return func(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def profiling(clock: Clock | None = None) -> Iterator[RootStep]:
    """Record everything inside the block as one trace on an empty stack."""

    root = RootStep()
    with root.recording(clock):
        yield root


def profile(body: Callable[..., Any], *args: Any, clock: Clock | None = None, **kwargs: Any) -> RootStep:
    """Run ``body`` as a whole trace and return the finished root."""

    with profiling(clock) as root:
        body(*args, **kwargs)
    return root
