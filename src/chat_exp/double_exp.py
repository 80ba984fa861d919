"""Global, optionally time-boxed double-EXP window.

The window's state is a single record, persisted as
{"doubleExp": bool, "doubleExpEndTime": int | null} (end time in epoch ms).
A timed window is expired both lazily (before every multiplier lookup) and
by a timer on the running asyncio loop. Every toggle bumps a generation
counter; a timer armed under an older generation does nothing when it fires.
"""
from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from pathlib import Path

from chat_exp.cooldowns import now_ms
from chat_exp.store import read_json, write_json

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "exp-config.json"
DOUBLE_EXP_MULTIPLIER = 2

DURATION_UNITS_MS: dict[str, int] = {
    "minute": 60 * 1000,
    "hour": 60 * 60 * 1000,
    "day": 24 * 60 * 60 * 1000,
}

_DURATION_RE = re.compile(r"^(\d+)\s*(minute|hour|day)s?$", re.IGNORECASE)


def parse_duration(text: str) -> int:
    """Parse '<n> minute|hour|day[s]' into milliseconds.

    "30 minutes" -> 1_800_000, "1 Day" -> 86_400_000.
    Raises ValueError for anything else, including a zero amount.
    """
    match = _DURATION_RE.match(text.strip())
    if not match:
        raise ValueError("Invalid format. Use: number + unit (minutes/hours/days)")
    amount = int(match.group(1))
    if amount <= 0:
        raise ValueError("Duration must be a positive number of minutes, hours or days")
    return amount * DURATION_UNITS_MS[match.group(2).lower()]


class DoubleExpWindow:
    """The double-EXP flag plus its optional expiry."""

    def __init__(self, path: Path, clock: Callable[[], int] = now_ms) -> None:
        self.path = path
        self.clock = clock
        self.enabled = False
        self.end_time: int | None = None
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def load(self) -> None:
        """Restore the stored window, expiring or re-arming it as needed."""
        raw = read_json(self.path) or {}
        enabled = raw.get("doubleExp", False)
        end_time = raw.get("doubleExpEndTime")
        if not isinstance(enabled, bool) or not _is_timestamp(end_time):
            logger.warning("Ignoring malformed double EXP config in %s: %r", self.path, raw)
            enabled, end_time = False, None
        self._apply(enabled, end_time, persist=False)
        self.check_expiry()

    def save(self) -> bool:
        """Persist the current record. Returns False (and logs) on failure."""
        record = {"doubleExp": self.enabled, "doubleExpEndTime": self.end_time}
        try:
            write_json(record, self.path)
        except OSError:
            logger.exception("Failed to save double EXP config to %s", self.path)
            return False
        return True

    def enable(self, duration_ms: int | None = None) -> None:
        """Turn the window on, indefinitely or for duration_ms."""
        if duration_ms is None:
            self._apply(True, None)
            logger.info("Double EXP enabled indefinitely")
            return
        if isinstance(duration_ms, bool) or not isinstance(duration_ms, int) or duration_ms <= 0:
            raise ValueError(f"Duration must be a positive number of milliseconds, got {duration_ms!r}")
        self._apply(True, self.clock() + duration_ms)
        logger.info("Double EXP enabled until %d", self.end_time)

    def disable(self) -> None:
        self._apply(False, None)
        logger.info("Double EXP disabled")

    def toggle(self, argument: str | None = None) -> bool:
        """Operator toggle: no argument flips, "off" disables, else a duration.

        The duration is parsed before anything changes. Returns the new flag.
        """
        arg = (argument or "").strip()
        if not arg:
            if self.is_active():
                self.disable()
            else:
                self.enable()
        elif arg.lower() == "off":
            self.disable()
        else:
            self.enable(parse_duration(arg))
        return self.enabled

    def check_expiry(self) -> bool:
        """Disable a timed window whose end has passed. Returns True if it did."""
        if self.enabled and self.end_time is not None and self.clock() >= self.end_time:
            self._apply(False, None)
            logger.info("Double EXP window expired")
            return True
        return False

    def is_active(self) -> bool:
        self.check_expiry()
        return self.enabled

    def current_multiplier(self) -> int:
        return DOUBLE_EXP_MULTIPLIER if self.is_active() else 1

    def remaining_ms(self) -> int | None:
        """Milliseconds left in a timed window, None when off or indefinite."""
        if not self.is_active() or self.end_time is None:
            return None
        return max(0, self.end_time - self.clock())

    def close(self) -> None:
        """Drop any armed timer. State on disk is left as is."""
        self._generation += 1
        self._cancel_timer()

    def _apply(self, enabled: bool, end_time: int | None, persist: bool = True) -> None:
        self._generation += 1
        self._cancel_timer()
        self.enabled = enabled
        self.end_time = end_time if enabled else None
        if persist:
            self.save()
        if self.enabled and self.end_time is not None:
            self._arm(self._generation)

    def _arm(self, generation: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; double EXP expiry is checked on next use")
            return
        delay = max(0, self.end_time - self.clock()) / 1000
        self._timer = loop.call_later(delay, self._on_timer, generation)

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale double EXP timer (generation %d)", generation)
            return
        self._timer = None
        if not self.check_expiry() and self.enabled and self.end_time is not None:
            # Fired ahead of the clock; wait out the remainder.
            self._arm(generation)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def _is_timestamp(value: object) -> bool:
    return value is None or (isinstance(value, int) and not isinstance(value, bool))
