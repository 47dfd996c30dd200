"""
Reward Calculator

Turns a habit snapshot into the experience, streak bonus and coin deltas
of one completion. Pure, no storage access.

Rules:
- base_exp = round(exp_value * difficulty multiplier)  (easy 1x, medium 1.5x, hard 2x)
- streak_bonus = 5 XP for every full 7 days of streak, from the streak
  before this completion
- good habits earn base_exp + streak_bonus and 5 coins
- bad habits cost base_exp and earn no coins or streak bonus
"""

from dataclasses import dataclass

from betterme.models import Habit, Difficulty
from betterme.utils.numbers import round_half_up

DIFFICULTY_MULTIPLIERS = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2.0,
}

STREAK_BONUS_INTERVAL = 7
STREAK_BONUS_EXP = 5
COINS_PER_GOOD_COMPLETION = 5


@dataclass(frozen=True)
class Reward:
    """Deltas produced by one habit completion"""
    base_exp: int
    streak_bonus: int
    signed_total: int
    coin_delta: int


def calculate_base_exp(exp_value: int, difficulty: Difficulty) -> int:
    return round_half_up(exp_value * DIFFICULTY_MULTIPLIERS[difficulty])


def calculate_streak_bonus(streak: int) -> int:
    return (streak // STREAK_BONUS_INTERVAL) * STREAK_BONUS_EXP


def calculate_reward(habit: Habit) -> Reward:
    """
    Calculate the reward for completing `habit` once

    Args:
        habit: Habit as it was before this completion

    Returns:
        Reward with base_exp, streak_bonus, signed_total, coin_delta
    """
    base_exp = calculate_base_exp(habit.exp_value, habit.difficulty)
    streak_bonus = calculate_streak_bonus(habit.streak)

    if habit.is_good:
        return Reward(
            base_exp=base_exp,
            streak_bonus=streak_bonus,
            signed_total=base_exp + streak_bonus,
            coin_delta=COINS_PER_GOOD_COMPLETION,
        )

    return Reward(
        base_exp=base_exp,
        streak_bonus=0,
        signed_total=-base_exp,
        coin_delta=0,
    )
