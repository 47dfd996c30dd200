"""Habit completion log"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class HabitLog(BaseModel):
    """
    Immutable completion record.

    exp_earned and streak_bonus are snapshots of the reward at completion
    time and are never recomputed.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    habit_id: str
    completed_at: datetime
    exp_earned: int
    streak_bonus: int = 0
    notes: Optional[str] = None

    @property
    def total_exp(self) -> int:
        return self.exp_earned + self.streak_bonus
