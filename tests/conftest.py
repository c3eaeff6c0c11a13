"""Shared fakes for the unit tests."""

from typing import Callable

import pytest


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock for the typing timeout."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire(self) -> int:
        fired = 0
        for timer in self.pending:
            timer.cancelled = True
            timer.callback()
            fired += 1
        return fired


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point ~/.bearboo at a temp dir."""
    monkeypatch.setenv("BEARBOO_HOME", str(tmp_path))
    monkeypatch.delenv("BEARBOO_API_KEY", raising=False)
    monkeypatch.delenv("BEARBOO_DATABASE_URL", raising=False)
    return tmp_path
