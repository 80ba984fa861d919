"""Per-user throttling of self-triggered EXP grants."""
from __future__ import annotations

import time
from collections.abc import Callable

EXP_COOLDOWN_MS = 30_000


def now_ms() -> int:
    """Wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


class CooldownGate:
    """Tracks when each user last earned EXP through their own activity.

    Only self-triggered grants consult and update the gate. Admin grants and
    milestone bonuses bypass it.
    """

    def __init__(self, window_ms: int = EXP_COOLDOWN_MS, clock: Callable[[], int] = now_ms) -> None:
        self.window_ms = window_ms
        self.clock = clock
        self._last_grant: dict[str, int] = {}

    def is_throttled(self, user_id: str) -> bool:
        last = self._last_grant.get(user_id)
        if last is None:
            return False
        return self.clock() - last < self.window_ms

    def record(self, user_id: str) -> None:
        self._last_grant[user_id] = self.clock()

    def last_grant(self, user_id: str) -> int | None:
        return self._last_grant.get(user_id)
