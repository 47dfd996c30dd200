"""
Progression and reward engine

This package implements the character progression core:
- Experience and level bands
- Reward calculation for habit completions
- Progression updates with level-up detection and free unlocks
- Shop unlock/equip gate
- Read-only analytics
"""

from betterme.progression.levels import exp_band, level_floor, level_from_exp
from betterme.progression.rewards import Reward, calculate_reward
from betterme.progression.updater import (
    CompletionPlan,
    CompletionResult,
    ExpGainEvent,
    LevelUpEvent,
    ProgressionUpdater,
    plan_completion,
)
from betterme.progression.shop import equip, free_unlock_check, purchase, unequip
from betterme.progression.analytics import AnalyticsReport, build_report

__all__ = [
    "exp_band",
    "level_floor",
    "level_from_exp",
    "Reward",
    "calculate_reward",
    "CompletionPlan",
    "CompletionResult",
    "ExpGainEvent",
    "LevelUpEvent",
    "ProgressionUpdater",
    "plan_completion",
    "equip",
    "free_unlock_check",
    "purchase",
    "unequip",
    "AnalyticsReport",
    "build_report",
]
