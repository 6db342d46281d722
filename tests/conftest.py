from __future__ import annotations

from collections.abc import Iterator

import pytest

from tuneup_profiler import recorder


class FakeClock:
    """Monotonic clock that only moves when a test advances it."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def fresh_stack() -> Iterator[None]:
    recorder.reset()
    yield
    recorder.reset()
