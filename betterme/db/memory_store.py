"""
In-memory storage

Keeps every entity in process dictionaries. Used by tests and local
development; nothing is persisted. Single-row updates are atomic, there
are no multi-row transactions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from betterme.exceptions import QueryError, RecordNotFoundError
from betterme.models import CharacterItem, Habit, HabitLog, Profile

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryStore:
    """Dictionary-backed Storage implementation"""

    supports_transactions = False

    def __init__(self, items: Optional[List[CharacterItem]] = None):
        self._profiles: Dict[str, Profile] = {}
        self._habits: Dict[str, Habit] = {}
        self._logs: Dict[str, HabitLog] = {}
        self._items: Dict[str, CharacterItem] = {item.id: item for item in items or []}
        logger.debug("InMemoryStore initialized - data is NOT persisted")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(self, profile_id: str) -> Profile:
        profile = self._profiles.get(profile_id)
        if profile is None:
            raise RecordNotFoundError(
                f"Profile {profile_id} not found",
                record_type="Profile",
                record_id=profile_id,
                operation="get_profile",
            )
        return profile.model_copy(deep=True)

    async def create_profile(self, profile: Profile) -> Profile:
        if profile.id in self._profiles:
            raise QueryError(f"Profile {profile.id} already exists", operation="create_profile")
        self._profiles[profile.id] = profile.model_copy(deep=True)
        return profile

    async def update_profile(self, profile_id: str, fields: Dict[str, Any]) -> Profile:
        current = await self.get_profile(profile_id)
        updated = Profile.model_validate({**current.model_dump(), **fields})
        self._profiles[profile_id] = updated
        return updated.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    async def get_habit(self, habit_id: str) -> Habit:
        habit = self._habits.get(habit_id)
        if habit is None:
            raise RecordNotFoundError(
                f"Habit {habit_id} not found",
                record_type="Habit",
                record_id=habit_id,
                operation="get_habit",
            )
        return habit.model_copy(deep=True)

    async def list_habits(self, user_id: str, active_only: bool = True) -> List[Habit]:
        habits = [
            h for h in self._habits.values()
            if h.user_id == user_id and (h.is_active or not active_only)
        ]
        habits.sort(key=lambda h: h.created_at, reverse=True)
        return [h.model_copy(deep=True) for h in habits]

    async def create_habit(self, habit: Habit) -> Habit:
        if habit.id in self._habits:
            raise QueryError(f"Habit {habit.id} already exists", operation="create_habit")
        self._habits[habit.id] = habit.model_copy(deep=True)
        return habit

    async def update_habit(self, habit_id: str, fields: Dict[str, Any]) -> Habit:
        current = await self.get_habit(habit_id)
        updated = Habit.model_validate({**current.model_dump(), **fields})
        self._habits[habit_id] = updated
        return updated.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Habit logs
    # ------------------------------------------------------------------

    async def get_habit_log(self, log_id: str) -> Optional[HabitLog]:
        return self._logs.get(log_id)

    async def insert_habit_log(self, log: HabitLog) -> HabitLog:
        # Keyed by id: re-inserting the same log returns the stored one
        existing = self._logs.get(log.id)
        if existing is not None:
            return existing
        self._logs[log.id] = log
        return log

    async def list_habit_logs(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        habit_id: Optional[str] = None,
        descending: bool = True,
    ) -> List[HabitLog]:
        logs = [log for log in self._logs.values() if log.user_id == user_id]
        if habit_id is not None:
            logs = [log for log in logs if log.habit_id == habit_id]
        if since is not None:
            logs = [log for log in logs if _as_utc(log.completed_at) >= _as_utc(since)]
        if until is not None:
            logs = [log for log in logs if _as_utc(log.completed_at) < _as_utc(until)]
        logs.sort(key=lambda log: _as_utc(log.completed_at), reverse=descending)
        return logs

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_items(
        self,
        required_level: Optional[int] = None,
        coin_cost: Optional[int] = None,
    ) -> List[CharacterItem]:
        items = [
            item for item in self._items.values()
            if (required_level is None or item.required_level == required_level)
            and (coin_cost is None or item.coin_cost == coin_cost)
        ]
        items.sort(key=lambda item: item.required_level)
        return items
