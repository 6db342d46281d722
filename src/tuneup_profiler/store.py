"""Simple in-memory store of the most recently finished traces."""

from __future__ import annotations

from collections import deque
from threading import Lock

from .steps import RootStep


class TraceStore:
    """Bounded, thread-safe buffer of finished traces, newest last."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._traces: deque[tuple[str, RootStep]] = deque(maxlen=capacity)
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._traces)

    def add(self, route: str, root: RootStep) -> None:
        """Keep a finished trace, evicting the oldest one when full."""

        root.ensure_closed()
        with self._lock:
            self._traces.append((route, root))

    def last(self) -> tuple[str, RootStep] | None:
        with self._lock:
            return self._traces[-1] if self._traces else None

    def recent(self) -> list[tuple[str, RootStep]]:
        with self._lock:
            return list(self._traces)

    def clear(self) -> None:
        with self._lock:
            self._traces.clear()
