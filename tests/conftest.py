"""Global test fixtures and utilities for betterme tests"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from betterme.db.memory_store import InMemoryStore
from betterme.models import (
    CharacterItem,
    Difficulty,
    Habit,
    HabitCategory,
    HabitType,
    ItemCategory,
    Profile,
)
from betterme.progression.updater import ProgressionUpdater


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Reference time used by time-dependent tests"""
    return datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Model Factories
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def make_habit(test_user_id):
    """Factory for Habit instances with sensible defaults"""
    counter = {"n": 0}

    def _make(**overrides) -> Habit:
        counter["n"] += 1
        values = {
            "id": f"habit-{counter['n']}",
            "user_id": test_user_id,
            "name": "Morning exercise",
            "category": HabitCategory.HEALTH,
            "habit_type": HabitType.GOOD,
            "exp_value": 20,
            "difficulty": Difficulty.MEDIUM,
            "streak": 0,
            "best_streak": 0,
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        values.update(overrides)
        if values["best_streak"] < values["streak"]:
            values["best_streak"] = values["streak"]
        return Habit(**values)

    return _make


@pytest.fixture
def make_profile(test_user_id):
    """Factory for Profile instances (level 1, zero exp by default)"""
    def _make(**overrides) -> Profile:
        values = {
            "id": test_user_id,
            "email": "hero@example.com",
            "character_level": 1,
            "total_exp": 0,
            "current_exp": 0,
            "exp_to_next": 100,
            "coins": 0,
        }
        values.update(overrides)
        return Profile(**values)

    return _make


@pytest.fixture
def catalog():
    """Small shop catalog covering several categories"""
    return [
        CharacterItem(id="cap", name="Cap", category=ItemCategory.HAT, required_level=1, coin_cost=10),
        CharacterItem(id="crown", name="Crown", category=ItemCategory.HAT, required_level=5, coin_cost=100),
        CharacterItem(id="tunic", name="Tunic", category=ItemCategory.SHIRT, required_level=1, coin_cost=15),
        CharacterItem(id="sparkle", name="Sparkle", category=ItemCategory.EFFECT, required_level=6, coin_cost=0),
        CharacterItem(id="cat", name="Cat", category=ItemCategory.COMPANION, required_level=6, coin_cost=0),
        CharacterItem(id="dragon", name="Dragon", category=ItemCategory.COMPANION, required_level=6, coin_cost=500),
        CharacterItem(id="halo", name="Halo", category=ItemCategory.EFFECT, required_level=11, coin_cost=0),
    ]


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def memory_store(catalog):
    """In-memory storage seeded with the test catalog"""
    return InMemoryStore(items=catalog)


@pytest.fixture
def mock_store():
    """Storage double where every call is an AsyncMock"""
    store = AsyncMock()
    store.supports_transactions = False
    store.get_habit_log.return_value = None
    return store


@pytest.fixture
def updater(memory_store):
    """ProgressionUpdater over the in-memory store"""
    return ProgressionUpdater(memory_store)
