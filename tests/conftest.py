"""Shared fixtures for deploy-progress tests."""

from __future__ import annotations

import io

import pytest

from deploy_progress.term import color


@pytest.fixture(autouse=True)
def plain_text():
    """Render without colour codes unless a test enables them."""
    color.disable()
    yield
    color.disable()


class FakeTerminal(io.StringIO):
    """In-memory sink that claims to be a terminal."""

    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def isatty(self) -> bool:
        return True

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


@pytest.fixture
def terminal() -> FakeTerminal:
    return FakeTerminal()


class FakeClock:
    """Manually advanced clock for stopwatches."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(100.0)
