"""Persisted per-user EXP ledger for chat-exp."""
from __future__ import annotations

import logging
import re
from pathlib import Path

from chat_exp.store import read_json, write_json

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "exp.json"

_NON_ID_CHARS = re.compile(r"[^a-z0-9]")


def to_id(name: str) -> str:
    """Normalise a user name to its id: lower-case, alphanumerics only.

    "Prince Sky" -> "princesky". Numbers are accepted as names. Raises
    ValueError for any other type, or if nothing is left.
    """
    if isinstance(name, bool) or not isinstance(name, (str, int)):
        raise ValueError(f"Invalid user name: {name!r}")
    user_id = _NON_ID_CHARS.sub("", str(name).lower())
    if not user_id:
        raise ValueError(f"Invalid user name: {name!r}")
    return user_id


class Ledger:
    """Mapping of user id to cumulative EXP, written through to a JSON file.

    Every mutation rewrites the whole file. A failed write is logged and the
    in-memory state stays authoritative until the next successful write.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, int] = {}

    def load(self) -> None:
        """Replace in-memory state with the stored ledger (empty if unusable)."""
        raw = read_json(self.path)
        data: dict[str, int] = {}
        for key, value in (raw or {}).items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                logger.warning("Dropping invalid ledger entry %r: %r", key, value)
                continue
            try:
                user_id = to_id(key)
            except ValueError:
                logger.warning("Dropping ledger entry with invalid user id %r", key)
                continue
            data[user_id] = data.get(user_id, 0) + value
        self._data = data
        logger.debug("Loaded %d ledger entries from %s", len(data), self.path)

    def save(self) -> bool:
        """Write the full ledger to disk. Returns False (and logs) on failure."""
        try:
            write_json(dict(self._data), self.path)
        except OSError:
            logger.exception("Failed to save EXP ledger to %s", self.path)
            return False
        return True

    def read(self, user: str) -> int:
        return self._data.get(to_id(user), 0)

    def has(self, user: str, amount: int) -> bool:
        return self.read(user) >= amount

    def write(self, user: str, exp: int) -> int:
        """Set a user's EXP to an absolute value."""
        user_id = to_id(user)
        self._data[user_id] = exp
        self.save()
        return exp

    def grant(self, user: str, amount: int) -> int:
        """Add amount to a user's EXP and return the new total."""
        user_id = to_id(user)
        new_exp = self._data.get(user_id, 0) + amount
        self._data[user_id] = new_exp
        self.save()
        return new_exp

    def take(self, user: str, amount: int) -> int:
        """Subtract amount if the balance covers it, else leave it untouched.

        Returns the resulting balance either way.
        """
        user_id = to_id(user)
        current = self._data.get(user_id, 0)
        if current < amount:
            return current
        self._data[user_id] = current - amount
        self.save()
        return current - amount

    def reset_all(self) -> None:
        """Clear every entry."""
        self._data = {}
        self.save()

    def entries(self) -> list[tuple[str, int]]:
        """Return (user_id, exp) pairs in insertion order."""
        return list(self._data.items())

    def __len__(self) -> int:
        return len(self._data)
