"""Level-up detection and milestone bonuses for chat-exp."""
from __future__ import annotations

import logging
from collections.abc import Callable

from chat_exp.levels import level_from_exp

logger = logging.getLogger(__name__)

MILESTONE_LEVEL_INTERVAL = 5
ANNOUNCEMENT_LEVEL_INTERVAL = 10
BONUS_EXP_MULTIPLIER = 5

# (user_id, amount, dispatched) -> new EXP total
BonusGrant = Callable[[str, int, set[tuple[str, int]]], int]


class RewardListener:
    """Receives progression events. Override the hooks you care about."""

    def on_level_up(self, user_id: str, old_level: int, new_level: int) -> None:
        pass

    def on_milestone(self, user_id: str, level: int, bonus: int) -> None:
        pass

    def on_announcement(self, user_id: str, level: int) -> None:
        pass


def milestone_bonus(level: int) -> int:
    """Bonus EXP for reaching `level`, 0 if it is not a milestone."""
    if level <= 0 or level % MILESTONE_LEVEL_INTERVAL != 0:
        return 0
    return level * BONUS_EXP_MULTIPLIER


class RewardDispatcher:
    """Fires events for every level crossed and pays out milestone bonuses.

    Bonuses go back through `bonus_grant`, the engine's privileged grant
    path, so they are multiplied by an active double-EXP window and may in
    turn cross further milestones.
    """

    def __init__(self, listener: RewardListener | None = None, bonus_grant: BonusGrant | None = None) -> None:
        self.listener = listener or RewardListener()
        self.bonus_grant = bonus_grant

    def dispatch(
        self,
        user_id: str,
        exp_before: int,
        exp_after: int,
        dispatched: set[tuple[str, int]] | None = None,
    ) -> list[int]:
        """Handle a change from exp_before to exp_after.

        Returns the levels handled by this call, in order, not counting
        levels reached by cascaded bonuses.
        """
        if dispatched is None:
            dispatched = set()
        level_before = level_from_exp(exp_before)
        level_after = level_from_exp(exp_after)

        handled: list[int] = []
        for level in range(level_before + 1, level_after + 1):
            if (user_id, level) in dispatched:
                continue
            dispatched.add((user_id, level))
            handled.append(level)
            self._notify("on_level_up", user_id, level - 1, level)

            if level % ANNOUNCEMENT_LEVEL_INTERVAL == 0:
                self._notify("on_announcement", user_id, level)

            bonus = milestone_bonus(level)
            if bonus:
                self._notify("on_milestone", user_id, level, bonus)
                if self.bonus_grant is not None:
                    self.bonus_grant(user_id, bonus, dispatched)
        return handled

    def _notify(self, hook: str, *args: object) -> None:
        try:
            getattr(self.listener, hook)(*args)
        except Exception:
            # The ledger is already updated; a failing listener must not stop the payout.
            logger.exception("Reward listener %s failed for %r", hook, args)
