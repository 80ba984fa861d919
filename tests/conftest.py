"""Shared fixtures for chat-exp tests."""

import pytest

from chat_exp.engine import ExpEngine
from chat_exp.rewards import RewardListener


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingListener(RewardListener):
    def __init__(self) -> None:
        self.level_ups: list[tuple[str, int, int]] = []
        self.milestones: list[tuple[str, int, int]] = []
        self.announcements: list[tuple[str, int]] = []

    def on_level_up(self, user_id, old_level, new_level):
        self.level_ups.append((user_id, old_level, new_level))

    def on_milestone(self, user_id, level, bonus):
        self.milestones.append((user_id, level, bonus))

    def on_announcement(self, user_id, level):
        self.announcements.append((user_id, level))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def engine(tmp_path, clock, listener):
    """A loaded engine over an empty temporary data directory."""
    eng = ExpEngine(data_dir=tmp_path / "data", listener=listener, clock=clock).load()
    yield eng
    eng.close()
