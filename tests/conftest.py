"""Shared fixtures: a hand-cranked clock and a few identities."""

import pytest

from ragebait.activity import ActivityLog
from ragebait.config import EngineConfig
from ragebait.models import Identity

from arena.store import ArenaStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alice():
    return Identity(id="dev_1", name="Alice", handle="@alice")


@pytest.fixture
def bob():
    return Identity(id="dev_2", name="Bob", handle="@bob")


@pytest.fixture
def carol():
    return Identity(id="dev_3", name="Carol", handle="@carol")


@pytest.fixture
def activity(clock):
    return ActivityLog(15, now=clock)


@pytest.fixture
def store(activity, clock):
    return ArenaStore(activity, EngineConfig(), now=clock)
