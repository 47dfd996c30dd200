"""Domain models"""

from betterme.models.habit import (
    Habit,
    HabitInput,
    HabitCategory,
    HabitType,
    Difficulty,
    HABIT_CATEGORIES,
)
from betterme.models.habit_log import HabitLog
from betterme.models.item import CharacterItem, ItemCategory
from betterme.models.profile import Profile

__all__ = [
    "Habit",
    "HabitInput",
    "HabitCategory",
    "HabitType",
    "Difficulty",
    "HABIT_CATEGORIES",
    "HabitLog",
    "CharacterItem",
    "ItemCategory",
    "Profile",
]
