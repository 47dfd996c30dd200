"""Habit models"""
from enum import Enum
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class HabitCategory(str, Enum):
    """Fixed habit categories"""
    HEALTH = "health"
    LEARNING = "learning"
    PRODUCTIVITY = "productivity"
    SELF_CARE = "self-care"
    SOCIAL = "social"


# Enumeration order is the display order used by analytics
HABIT_CATEGORIES: tuple[HabitCategory, ...] = tuple(HabitCategory)


class HabitType(str, Enum):
    """Good habits are rewarded, bad habits are penalized"""
    GOOD = "good"
    BAD = "bad"


class Difficulty(str, Enum):
    """Habit difficulty, scales the base experience reward"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class HabitInput(BaseModel):
    """
    Validate the user-editable part of a habit definition

    Constraints:
    - name: 1-200 characters, whitespace trimmed
    - exp_value: 5-50
    - notes: up to 500 characters, blank becomes None
    """
    name: str = Field(..., min_length=1, max_length=200)
    category: HabitCategory = HabitCategory.HEALTH
    habit_type: HabitType = HabitType.GOOD
    exp_value: int = Field(20, ge=5, le=50)
    difficulty: Difficulty = Difficulty.MEDIUM
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Trim whitespace and reject blank names"""
        trimmed = v.strip()
        if not trimmed:
            raise ValueError("Habit name cannot be only whitespace")
        return trimmed

    @field_validator('notes')
    @classmethod
    def blank_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        trimmed = v.strip()
        return trimmed or None


class Habit(HabitInput):
    """A recurring task owned by a profile"""
    id: str
    user_id: str
    streak: int = Field(0, ge=0)
    best_streak: int = Field(0, ge=0)
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode='after')
    def best_streak_covers_streak(self) -> 'Habit':
        """best_streak is a high-water mark of streak"""
        if self.best_streak < self.streak:
            raise ValueError(
                f"best_streak ({self.best_streak}) cannot be below streak ({self.streak})"
            )
        return self

    @property
    def is_good(self) -> bool:
        return self.habit_type == HabitType.GOOD
