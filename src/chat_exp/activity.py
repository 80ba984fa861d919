"""Automatic EXP for recently active chatters.

The chat layer records each public message; a periodic tick then gives every
user who spoke within INACTIVE_USER_THRESHOLD_MS a self-triggered grant,
which the cooldown gate throttles like any other.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from chat_exp.cooldowns import now_ms
from chat_exp.engine import ExpEngine
from chat_exp.ledger import to_id

logger = logging.getLogger(__name__)

INACTIVE_USER_THRESHOLD_MS = 5 * 60 * 1000
TICK_EXP = 1


class ActivityTracker:
    """Last public message time per user."""

    def __init__(
        self,
        threshold_ms: int = INACTIVE_USER_THRESHOLD_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.threshold_ms = threshold_ms
        self.clock = clock
        self._last_message: dict[str, int] = {}

    def record_message(self, user: str) -> None:
        self._last_message[to_id(user)] = self.clock()

    def forget(self, user: str) -> None:
        """Drop a user, e.g. when they disconnect."""
        self._last_message.pop(to_id(user), None)

    def active_users(self) -> list[str]:
        """Users whose last message is within the threshold, oldest first."""
        now = self.clock()
        return [
            user_id
            for user_id, last in self._last_message.items()
            if now - last <= self.threshold_ms
        ]


def record_activity(engine: ExpEngine, tracker: ActivityTracker, user: str, amount: int = TICK_EXP) -> int:
    """Handle one public message: mark the user active and give the cooldown-gated grant."""
    tracker.record_message(user)
    return engine.grant(user, amount)


def grant_active(engine: ExpEngine, tracker: ActivityTracker, amount: int = TICK_EXP) -> dict[str, int]:
    """Run one tick. Returns {user_id: new_exp} for every active user."""
    results = {}
    for user_id in tracker.active_users():
        results[user_id] = engine.grant(user_id, amount)
    return results


async def run_ticker(
    engine: ExpEngine,
    tracker: ActivityTracker,
    interval: float,
    amount: int = TICK_EXP,
) -> None:
    """Call grant_active every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        results = grant_active(engine, tracker, amount)
        logger.debug("Activity tick granted EXP to %d users", len(results))
