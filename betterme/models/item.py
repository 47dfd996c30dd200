"""Cosmetic shop item models"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ItemCategory(str, Enum):
    """Equip slots, one equipped item per category"""
    HAT = "hat"
    SHIRT = "shirt"
    ACCESSORY = "accessory"
    EFFECT = "effect"
    COMPANION = "companion"


class CharacterItem(BaseModel):
    """Read-only catalog entry"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: ItemCategory
    required_level: int = Field(1, ge=1)
    coin_cost: int = Field(0, ge=0)
    sprite_layer: Optional[str] = None
    description: Optional[str] = None
