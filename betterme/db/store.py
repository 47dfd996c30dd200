"""
Storage collaborator contract

The progression core receives a Storage handle explicitly; it never
reaches for a global client. Implementations raise StorageError
subclasses for every I/O failure.

Handles with supports_transactions = True also provide
`transaction()`, an async context manager that makes every call made
inside it commit or roll back together.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from betterme.models import CharacterItem, Habit, HabitLog, Profile


class Storage(Protocol):
    supports_transactions: bool

    # Profiles
    async def get_profile(self, profile_id: str) -> Profile: ...

    async def create_profile(self, profile: Profile) -> Profile: ...

    async def update_profile(self, profile_id: str, fields: Dict[str, Any]) -> Profile: ...

    # Habits
    async def get_habit(self, habit_id: str) -> Habit: ...

    async def list_habits(self, user_id: str, active_only: bool = True) -> List[Habit]: ...

    async def create_habit(self, habit: Habit) -> Habit: ...

    async def update_habit(self, habit_id: str, fields: Dict[str, Any]) -> Habit: ...

    # Habit logs
    async def get_habit_log(self, log_id: str) -> Optional[HabitLog]: ...

    async def insert_habit_log(self, log: HabitLog) -> HabitLog: ...

    async def list_habit_logs(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        habit_id: Optional[str] = None,
        descending: bool = True,
    ) -> List[HabitLog]: ...

    # Catalog
    async def list_items(
        self,
        required_level: Optional[int] = None,
        coin_cost: Optional[int] = None,
    ) -> List[CharacterItem]: ...
