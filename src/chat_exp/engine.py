"""EXP engine for chat-exp.

ExpEngine owns the ledger, the cooldown gate, the double-EXP window and the
reward dispatcher, and is the only thing callers talk to. Grants flow:

    cooldown gate (self-triggered only) -> multiplier -> ledger -> rewards

Milestone bonuses re-enter through the privileged path, skipping the gate.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from chat_exp import leaderboard
from chat_exp.config import DEFAULT_DATA_DIR, get_cooldown_ms, get_data_dir
from chat_exp.cooldowns import EXP_COOLDOWN_MS, CooldownGate, now_ms
from chat_exp.double_exp import CONFIG_FILENAME, DoubleExpWindow
from chat_exp.ledger import LEDGER_FILENAME, Ledger, to_id
from chat_exp.levels import LevelInfo, level_info
from chat_exp.rewards import RewardDispatcher, RewardListener

logger = logging.getLogger(__name__)


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Please specify a valid positive amount, got {amount!r}")


class ExpEngine:
    """The EXP system for one set of data files."""

    def __init__(
        self,
        data_dir: Path | None = None,
        listener: RewardListener | None = None,
        clock: Callable[[], int] = now_ms,
        cooldown_ms: int = EXP_COOLDOWN_MS,
    ) -> None:
        self.data_dir = data_dir or DEFAULT_DATA_DIR
        self.clock = clock
        self.ledger = Ledger(self.data_dir / LEDGER_FILENAME)
        self.cooldowns = CooldownGate(cooldown_ms, clock)
        self.double_exp = DoubleExpWindow(self.data_dir / CONFIG_FILENAME, clock)
        self.rewards = RewardDispatcher(listener, bonus_grant=self._grant_bonus)

    @classmethod
    def from_config(cls, config_path: Path | None = None, listener: RewardListener | None = None) -> ExpEngine:
        """Build an engine from config.json settings. Call load() before use."""
        return cls(
            data_dir=get_data_dir(config_path),
            listener=listener,
            cooldown_ms=get_cooldown_ms(config_path),
        )

    def load(self) -> ExpEngine:
        """Read both stores from disk. Unusable files load as empty defaults."""
        self.ledger.load()
        self.double_exp.load()
        return self

    def flush(self) -> bool:
        """Rewrite both stores. Returns False if either write failed."""
        ledger_ok = self.ledger.save()
        config_ok = self.double_exp.save()
        return ledger_ok and config_ok

    def close(self) -> None:
        self.double_exp.close()

    def __enter__(self) -> ExpEngine:
        return self.load()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def read(self, user: str) -> int:
        return self.ledger.read(user)

    def has(self, user: str, amount: int) -> bool:
        return self.ledger.has(user, amount)

    def grant(self, user: str, amount: int, reason: str | None = None, issuer: str | None = None) -> int:
        """Give a user EXP and return their new total.

        Without an issuer this is the user's own activity and is subject to
        the cooldown; a throttled grant changes nothing and returns the
        current total. With an issuer it is privileged and never throttled.
        The amount is multiplied while double EXP is active.
        """
        user_id = to_id(user)
        _check_amount(amount)
        if issuer is None:
            if self.cooldowns.is_throttled(user_id):
                logger.debug("EXP grant for %s throttled by cooldown", user_id)
                return self.ledger.read(user_id)
            self.cooldowns.record(user_id)
        else:
            logger.info("%s gave %d EXP to %s (%s)", issuer, amount, user_id, reason or "no reason")
        return self._credit(user_id, amount, set())

    def take(self, user: str, amount: int, reason: str | None = None, issuer: str | None = None) -> int:
        """Remove EXP from a user. An insufficient balance blocks the whole debit."""
        user_id = to_id(user)
        _check_amount(amount)
        before = self.ledger.read(user_id)
        after = self.ledger.take(user_id, amount)
        if after == before:
            logger.info("Not taking %d EXP from %s: balance is only %d", amount, user_id, before)
        else:
            logger.info("%s took %d EXP from %s (%s)", issuer or "system", amount, user_id, reason or "no reason")
        return after

    def set_absolute(self, user: str, exp: int) -> int:
        """Overwrite a user's EXP. No level-up events fire."""
        user_id = to_id(user)
        if isinstance(exp, bool) or not isinstance(exp, int) or exp < 0:
            raise ValueError(f"EXP must be a non-negative integer, got {exp!r}")
        logger.info("Setting EXP of %s to %d", user_id, exp)
        return self.ledger.write(user_id, exp)

    def reset_user(self, user: str) -> int:
        return self.set_absolute(user, 0)

    def reset_all(self) -> None:
        logger.info("Resetting EXP of all %d users", len(self.ledger))
        self.ledger.reset_all()

    def _credit(self, user_id: str, amount: int, dispatched: set[tuple[str, int]]) -> int:
        before = self.ledger.read(user_id)
        gained = amount * self.double_exp.current_multiplier()
        after = self.ledger.grant(user_id, gained)
        self.rewards.dispatch(user_id, before, after, dispatched)
        return self.ledger.read(user_id)

    def _grant_bonus(self, user_id: str, amount: int, dispatched: set[tuple[str, int]]) -> int:
        logger.info("Milestone bonus of %d EXP for %s", amount, user_id)
        return self._credit(user_id, amount, dispatched)

    def level_info(self, user: str) -> LevelInfo:
        return level_info(self.ledger.read(user))

    def top_users(self, limit: int = leaderboard.DEFAULT_LADDER_SIZE) -> list[tuple[str, int]]:
        return leaderboard.top_users(self.ledger.entries(), limit)

    def ladder(self, limit: int = leaderboard.DEFAULT_LADDER_SIZE) -> list[dict]:
        return leaderboard.build_ladder(self.top_users(limit))

    def enable_double_exp(self, duration_ms: int | None = None) -> None:
        self.double_exp.enable(duration_ms)

    def disable_double_exp(self) -> None:
        self.double_exp.disable()

    def toggle_double_exp(self, argument: str | None = None) -> bool:
        return self.double_exp.toggle(argument)

    def is_double_exp_active(self) -> bool:
        return self.double_exp.is_active()

    def double_exp_status(self) -> dict:
        active = self.double_exp.is_active()
        return {
            "enabled": active,
            "end_time": self.double_exp.end_time,
            "remaining_ms": self.double_exp.remaining_ms(),
            "multiplier": self.double_exp.current_multiplier(),
        }
