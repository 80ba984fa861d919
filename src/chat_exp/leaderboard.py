"""EXP ladder for chat-exp.

Pure functions over (user_id, exp) pairs taken from the ledger. Nothing here
mutates the ledger.
"""
from __future__ import annotations

from chat_exp.levels import exp_for_level, level_from_exp

DEFAULT_LADDER_SIZE = 100


def top_users(entries: list[tuple[str, int]], limit: int = DEFAULT_LADDER_SIZE) -> list[tuple[str, int]]:
    """Sort entries by EXP descending and keep the first `limit`.

    Ties keep their ledger (insertion) order since sorted() is stable.
    """
    if limit <= 0:
        return []
    return sorted(entries, key=lambda e: -e[1])[:limit]


def build_ladder(ranked: list[tuple[str, int]]) -> list[dict]:
    """Turn ranked pairs into ladder rows with 1-based rank and level data."""
    rows = []
    for i, (user_id, exp) in enumerate(ranked):
        level = level_from_exp(exp)
        rows.append({
            "rank": i + 1,
            "user": user_id,
            "exp": exp,
            "level": level,
            "next_level_at": exp_for_level(level + 1),
        })
    return rows
