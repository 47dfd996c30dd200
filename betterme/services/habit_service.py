"""
HabitService - Habit Management

Creates, edits and soft-deletes habits and routes completions to the
Progression Updater.
"""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

import pydantic

from betterme.db.store import Storage
from betterme.exceptions import ValidationError
from betterme.models import Habit, HabitInput
from betterme.progression.updater import CompletionResult, ProgressionUpdater

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(HabitInput.model_fields)


def _validation_error(error: pydantic.ValidationError, user_id: Optional[str]) -> ValidationError:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    return ValidationError(
        message=first["msg"],
        field=field,
        value=first.get("input"),
        user_id=user_id,
    )


class HabitService:
    """
    Service for habit definitions and completions.

    Responsibilities:
    - Habit validation (name, category, exp_value 5-50, ...)
    - Soft deletion via is_active
    - Completion through the ProgressionUpdater
    """

    def __init__(self, store: Storage, updater: ProgressionUpdater):
        self.store = store
        self.updater = updater
        logger.debug("HabitService initialized")

    async def create_habit(self, user_id: str, data: Dict[str, Any]) -> Habit:
        """
        Create a habit from user input

        Raises:
            ValidationError: input is malformed
        """
        try:
            habit_input = HabitInput.model_validate(data)
        except pydantic.ValidationError as e:
            raise _validation_error(e, user_id) from e

        habit = Habit(
            id=str(uuid4()),
            user_id=user_id,
            **habit_input.model_dump(),
        )
        created = await self.store.create_habit(habit)
        logger.info(f"Created habit {created.id} ({created.category.value}, {created.habit_type.value}) for {user_id}")
        return created

    async def update_habit(self, habit_id: str, data: Dict[str, Any]) -> Habit:
        """
        Edit the user-editable fields of a habit

        Streak counters are owned by the progression engine and are ignored here.
        """
        current = await self.store.get_habit(habit_id)
        changes = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        try:
            habit_input = HabitInput.model_validate({
                **current.model_dump(include=set(EDITABLE_FIELDS)),
                **changes,
            })
        except pydantic.ValidationError as e:
            raise _validation_error(e, current.user_id) from e

        fields = {k: getattr(habit_input, k) for k in changes}
        if not fields:
            return current
        return await self.store.update_habit(habit_id, fields)

    async def deactivate_habit(self, habit_id: str) -> Habit:
        """Soft delete: the habit and its logs stay in storage"""
        habit = await self.store.update_habit(habit_id, {"is_active": False})
        logger.info(f"Deactivated habit {habit_id}")
        return habit

    async def list_habits(self, user_id: str) -> List[Habit]:
        """Active habits, newest first"""
        return await self.store.list_habits(user_id, active_only=True)

    async def completed_today(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        tz: tzinfo = timezone.utc
    ) -> Set[str]:
        """Ids of habits with at least one completion today"""
        if now is None:
            now = datetime.now(timezone.utc)
        local_now = now.astimezone(tz)
        start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        logs = await self.store.list_habit_logs(
            user_id,
            since=start,
            until=start + timedelta(days=1),
        )
        return {log.habit_id for log in logs}

    async def complete_habit(
        self,
        profile_id: str,
        habit_id: str,
        now: Optional[datetime] = None
    ) -> CompletionResult:
        """
        Complete a habit for a profile

        Raises:
            ValidationError: habit is inactive or belongs to another profile
            StorageError / PartialUpdateError: see ProgressionUpdater.complete_habit
        """
        habit = await self.store.get_habit(habit_id)
        if habit.user_id != profile_id:
            raise ValidationError(
                message="Habit belongs to another profile",
                field="habit_id",
                value=habit_id,
                user_id=profile_id,
            )
        if not habit.is_active:
            raise ValidationError(
                message="Habit has been deleted",
                field="habit_id",
                value=habit_id,
                user_id=profile_id,
            )

        profile = await self.store.get_profile(profile_id)
        return await self.updater.complete_habit(habit, profile, now=now)
