"""User profile model"""
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class Profile(BaseModel):
    """
    Character progression state for one user.

    total_exp is signed: bad-habit penalties may push it below zero.
    current_exp and exp_to_next describe the position inside the current
    level band and are always derived from total_exp.
    """
    id: str
    email: Optional[str] = None
    character_level: int = Field(1, ge=1)
    total_exp: int = 0
    current_exp: int = 0
    exp_to_next: int = 100
    coins: int = Field(0, ge=0)
    equipped_items: list[str] = Field(default_factory=list)
    unlocked_items: list[str] = Field(default_factory=list)
    login_streak: int = Field(0, ge=0)
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('equipped_items', 'unlocked_items', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        # Postgres returns NULL for never-written arrays
        return [] if v is None else v
