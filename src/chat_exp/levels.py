"""Level curve over cumulative EXP. Pure functions, no side effects."""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

MIN_LEVEL_EXP = 15
LEVEL_MULTIPLIER = 1.4


@dataclass
class LevelInfo:
    """Where a cumulative EXP total sits on the curve."""

    level: int
    current_exp: int
    exp_for_current: int
    exp_for_next: int
    progress_in_level: int
    progress_percentage: int
    exp_needed: int


def exp_step(level: int) -> int:
    """EXP added to the running threshold after `level`. Formula: floor(15 * 1.4^L)."""
    return math.floor(MIN_LEVEL_EXP * (LEVEL_MULTIPLIER ** level))


def _thresholds() -> Iterator[tuple[int, int]]:
    """Yield (level, cumulative EXP needed to reach it), starting at level 1."""
    level = 1
    threshold = MIN_LEVEL_EXP
    while True:
        yield level, threshold
        threshold += exp_step(level)
        level += 1


def level_from_exp(exp: int) -> int:
    """Given cumulative EXP, return the level reached (0 below MIN_LEVEL_EXP)."""
    reached = 0
    for level, threshold in _thresholds():
        if exp < threshold:
            break
        reached = level
    return reached


def exp_for_level(level: int) -> int:
    """Cumulative EXP at which `level` is reached. Level 0 starts at 0 EXP."""
    if level <= 0:
        return 0
    for lv, threshold in _thresholds():
        if lv == level:
            break
    return threshold


def level_info(exp: int) -> LevelInfo:
    """Return the LevelInfo for a cumulative EXP total.

    Progress percentage is floored, so it reads 0..99 inside a level.
    """
    exp = max(0, exp)
    level = level_from_exp(exp)
    floor = exp_for_level(level)
    next_at = exp_for_level(level + 1)
    in_level = exp - floor
    span = next_at - floor
    return LevelInfo(
        level=level,
        current_exp=exp,
        exp_for_current=floor,
        exp_for_next=next_at,
        progress_in_level=in_level,
        progress_percentage=math.floor(in_level * 100 / span),
        exp_needed=next_at - exp,
    )
