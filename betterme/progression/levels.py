"""
Experience and Level Model

Converts cumulative experience into a character level and the position
inside that level's band.

Leveling Curve:
    level(total_exp)  = floor(sqrt(total_exp / 100)) + 1
    level_floor(L)    = (L - 1)^2 * 100

    Level 1: [0, 100)     Level 2: [100, 400)
    Level 3: [400, 900)   Level 4: [900, 1600)

level_floor is the exact algebraic inverse of level(), so every total
lands inside its own band:
    level_floor(level(x)) <= x < level_floor(level(x) + 1)

Negative totals (possible after bad-habit penalties) map to level 1 with
current_exp clamped to 0.
"""

import math
from typing import NamedTuple

from betterme.utils.numbers import round_half_up

EXP_PER_LEVEL_UNIT = 100
MILESTONE_INTERVAL = 5


class ExpBand(NamedTuple):
    """Position of a total inside its level band"""
    level: int
    current_exp: int
    exp_to_next: int


def level_floor(level: int) -> int:
    """Cumulative experience required to reach `level`"""
    if level <= 1:
        return 0
    return (level - 1) ** 2 * EXP_PER_LEVEL_UNIT


def level_from_exp(total_exp: int) -> int:
    """Character level for a cumulative experience total (minimum 1)"""
    if total_exp < EXP_PER_LEVEL_UNIT:
        return 1
    # isqrt on the integer quotient equals floor(sqrt(total_exp / 100)) without float error
    return math.isqrt(total_exp // EXP_PER_LEVEL_UNIT) + 1


def exp_band(total_exp: int) -> ExpBand:
    """
    Calculate level, experience inside the level, and band width

    Returns:
        ExpBand(level, current_exp, exp_to_next)
    """
    level = level_from_exp(total_exp)
    floor = level_floor(level)
    return ExpBand(
        level=level,
        current_exp=max(0, total_exp - floor),
        exp_to_next=level_floor(level + 1) - floor,
    )


def level_progress_percent(current_exp: int, exp_to_next: int) -> int:
    """Percentage through the current level band, for the character sheet"""
    if exp_to_next <= 0:
        return 0
    return round_half_up(current_exp / exp_to_next * 100)


def next_milestone(level: int) -> int:
    """Next multiple of five at or above `level`"""
    return math.ceil(level / MILESTONE_INTERVAL) * MILESTONE_INTERVAL


def is_unlock_level(level: int) -> bool:
    """Levels 6, 11, 16, ... open a new band of free items"""
    return level > 1 and level % MILESTONE_INTERVAL == 1
