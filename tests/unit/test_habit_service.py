"""Unit tests for HabitService"""
import pytest
import pytest_asyncio
from datetime import timedelta, timezone

from betterme.exceptions import RecordNotFoundError, ValidationError
from betterme.models import Difficulty, HabitCategory, HabitLog
from betterme.services.habit_service import HabitService


@pytest_asyncio.fixture
async def service(memory_store, updater, make_profile):
    await memory_store.create_profile(make_profile())
    return HabitService(memory_store, updater)


# ============================================================================
# Habit CRUD
# ============================================================================

@pytest.mark.asyncio
async def test_create_habit(service, test_user_id):
    """Test creating a habit from form data"""
    habit = await service.create_habit(test_user_id, {
        "name": "  Read 10 pages ",
        "category": "learning",
        "exp_value": 30,
        "difficulty": "hard",
    })

    assert habit.name == "Read 10 pages"
    assert habit.category == HabitCategory.LEARNING
    assert habit.difficulty == Difficulty.HARD
    assert habit.streak == 0
    assert habit.is_active
    assert [h.id for h in await service.list_habits(test_user_id)] == [habit.id]


@pytest.mark.asyncio
async def test_create_habit_invalid_exp(service, test_user_id):
    """exp_value outside 5-50 is rejected with the field name"""
    with pytest.raises(ValidationError) as exc_info:
        await service.create_habit(test_user_id, {"name": "Run", "exp_value": 80})

    assert exc_info.value.field == "exp_value"


@pytest.mark.asyncio
async def test_update_habit_ignores_streak_fields(service, memory_store, make_habit):
    """Only definition fields are editable"""
    habit = make_habit(streak=4)
    await memory_store.create_habit(habit)

    updated = await service.update_habit(habit.id, {"name": "Evening run", "streak": 99})

    assert updated.name == "Evening run"
    assert updated.streak == 4


@pytest.mark.asyncio
async def test_update_habit_validates(service, memory_store, make_habit):
    """Test invalid edits"""
    habit = make_habit()
    await memory_store.create_habit(habit)

    with pytest.raises(ValidationError):
        await service.update_habit(habit.id, {"category": "art"})


@pytest.mark.asyncio
async def test_deactivate_habit_keeps_logs(service, memory_store, make_habit, test_user_id, fixed_now):
    """Soft delete hides the habit but keeps its history"""
    habit = make_habit()
    await memory_store.create_habit(habit)
    await service.complete_habit(test_user_id, habit.id, now=fixed_now)

    await service.deactivate_habit(habit.id)

    assert await service.list_habits(test_user_id) == []
    assert len(await memory_store.list_habit_logs(test_user_id)) == 1


# ============================================================================
# Completion
# ============================================================================

@pytest.mark.asyncio
async def test_complete_habit(service, memory_store, make_habit, test_user_id, fixed_now):
    """Test completion goes through the progression updater"""
    habit = make_habit(exp_value=20, difficulty=Difficulty.MEDIUM)
    await memory_store.create_habit(habit)

    result = await service.complete_habit(test_user_id, habit.id, now=fixed_now)

    assert result.reward.signed_total == 30
    assert result.habit.streak == 1
    assert (await memory_store.get_profile(test_user_id)).total_exp == 30


@pytest.mark.asyncio
async def test_complete_other_users_habit(service, memory_store, make_habit, test_user_id):
    """Test completing a habit owned by someone else"""
    habit = make_habit(user_id="someone-else")
    await memory_store.create_habit(habit)

    with pytest.raises(ValidationError):
        await service.complete_habit(test_user_id, habit.id)

    assert await memory_store.list_habit_logs("someone-else") == []


@pytest.mark.asyncio
async def test_complete_inactive_habit(service, memory_store, make_habit, test_user_id):
    """Deleted habits cannot be completed"""
    habit = make_habit(is_active=False)
    await memory_store.create_habit(habit)

    with pytest.raises(ValidationError):
        await service.complete_habit(test_user_id, habit.id)


@pytest.mark.asyncio
async def test_complete_missing_habit(service, test_user_id):
    """Test an unknown habit id"""
    with pytest.raises(RecordNotFoundError):
        await service.complete_habit(test_user_id, "nope")


@pytest.mark.asyncio
async def test_completed_today(service, memory_store, test_user_id, fixed_now):
    """Only logs from the current local day count"""
    for log_id, habit_id, delta in (("a", "h1", 1), ("b", "h2", 9), ("c", "h3", 13)):
        await memory_store.insert_habit_log(HabitLog(
            id=log_id, user_id=test_user_id, habit_id=habit_id,
            completed_at=fixed_now - timedelta(hours=delta), exp_earned=10,
        ))

    assert await service.completed_today(test_user_id, now=fixed_now) == {"h1", "h2"}
    assert await service.completed_today(
        test_user_id, now=fixed_now, tz=timezone(timedelta(hours=-5))
    ) == {"h1"}
