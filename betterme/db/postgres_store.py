"""PostgreSQL storage (psycopg 3, async pool)"""
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

import psycopg
from psycopg import sql

from betterme.db.connection import Database
from betterme.exceptions import RecordNotFoundError, wrap_external_exception
from betterme.models import CharacterItem, Habit, HabitLog, Profile

logger = logging.getLogger(__name__)

# Connection of the transaction opened by PostgresStore.transaction() in this task
_current_conn: ContextVar[Optional[psycopg.AsyncConnection]] = ContextVar(
    "betterme_current_conn", default=None
)

PROFILE_COLUMNS = frozenset(Profile.model_fields)
HABIT_COLUMNS = frozenset(Habit.model_fields)
HABIT_LOG_COLUMNS = frozenset(HabitLog.model_fields)


def _to_db(values: Dict[str, Any]) -> Dict[str, Any]:
    """Store enums by value"""
    return {k: v.value if isinstance(v, Enum) else v for k, v in values.items()}


def _insert_query(table: str, columns: Sequence[str], on_conflict_nothing: bool = False) -> sql.Composed:
    query = sql.SQL("INSERT INTO {table} ({cols}) VALUES ({vals})").format(
        table=sql.Identifier(table),
        cols=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
        vals=sql.SQL(", ").join(sql.Placeholder(c) for c in columns),
    )
    if on_conflict_nothing:
        query += sql.SQL(" ON CONFLICT (id) DO NOTHING")
    return query + sql.SQL(" RETURNING *")


def _update_query(table: str, fields: Dict[str, Any], allowed: frozenset) -> sql.Composed:
    unknown = set(fields) - allowed
    if unknown or "id" in fields:
        raise ValueError(f"Cannot update {table} columns: {sorted(unknown | ({'id'} & set(fields)))}")
    return sql.SQL("UPDATE {table} SET {assignments} WHERE id = {id} RETURNING *").format(
        table=sql.Identifier(table),
        assignments=sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(k), sql.Placeholder(k)) for k in fields
        ),
        id=sql.Placeholder("id"),
    )


class PostgresStore:
    """Storage implementation backed by PostgreSQL"""

    supports_transactions = True

    def __init__(self, database: Database):
        self.database = database

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        conn = _current_conn.get()
        if conn is not None:
            # Inside transaction(): the outer block commits
            yield conn
            return

        async with self.database.connection() as conn:
            yield conn
            await conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[None, None]:
        """Run every store call inside this block in one database transaction"""
        async with self.database.connection() as conn:
            async with conn.transaction():
                token = _current_conn.set(conn)
                try:
                    yield
                finally:
                    _current_conn.reset(token)

    async def _fetchone(self, operation: str, query, params) -> Optional[dict]:
        try:
            async with self._connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    return await cur.fetchone()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=operation) from e

    async def _fetchall(self, operation: str, query, params) -> List[dict]:
        try:
            async with self._connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    return await cur.fetchall()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=operation) from e

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    async def get_profile(self, profile_id: str) -> Profile:
        row = await self._fetchone(
            "get_profile",
            "SELECT * FROM profiles WHERE id = %s",
            (profile_id,)
        )
        if row is None:
            raise RecordNotFoundError(
                f"Profile {profile_id} not found",
                record_type="Profile",
                record_id=profile_id,
                operation="get_profile",
            )
        return Profile.model_validate(row)

    async def create_profile(self, profile: Profile) -> Profile:
        values = _to_db(profile.model_dump())
        row = await self._fetchone("create_profile", _insert_query("profiles", list(values)), values)
        logger.info(f"Created profile {profile.id}")
        return Profile.model_validate(row)

    async def update_profile(self, profile_id: str, fields: Dict[str, Any]) -> Profile:
        query = _update_query("profiles", fields, PROFILE_COLUMNS)
        row = await self._fetchone("update_profile", query, {**_to_db(fields), "id": profile_id})
        if row is None:
            raise RecordNotFoundError(
                f"Profile {profile_id} not found",
                record_type="Profile",
                record_id=profile_id,
                operation="update_profile",
            )
        return Profile.model_validate(row)

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    async def get_habit(self, habit_id: str) -> Habit:
        row = await self._fetchone(
            "get_habit",
            "SELECT * FROM habits WHERE id = %s",
            (habit_id,)
        )
        if row is None:
            raise RecordNotFoundError(
                f"Habit {habit_id} not found",
                record_type="Habit",
                record_id=habit_id,
                operation="get_habit",
            )
        return Habit.model_validate(row)

    async def list_habits(self, user_id: str, active_only: bool = True) -> List[Habit]:
        query = "SELECT * FROM habits WHERE user_id = %s"
        if active_only:
            query += " AND is_active = TRUE"
        query += " ORDER BY created_at DESC"
        rows = await self._fetchall("list_habits", query, (user_id,))
        return [Habit.model_validate(row) for row in rows]

    async def create_habit(self, habit: Habit) -> Habit:
        values = _to_db(habit.model_dump())
        row = await self._fetchone("create_habit", _insert_query("habits", list(values)), values)
        return Habit.model_validate(row)

    async def update_habit(self, habit_id: str, fields: Dict[str, Any]) -> Habit:
        query = _update_query("habits", fields, HABIT_COLUMNS)
        row = await self._fetchone("update_habit", query, {**_to_db(fields), "id": habit_id})
        if row is None:
            raise RecordNotFoundError(
                f"Habit {habit_id} not found",
                record_type="Habit",
                record_id=habit_id,
                operation="update_habit",
            )
        return Habit.model_validate(row)

    # ------------------------------------------------------------------
    # Habit logs
    # ------------------------------------------------------------------

    async def get_habit_log(self, log_id: str) -> Optional[HabitLog]:
        row = await self._fetchone(
            "get_habit_log",
            "SELECT * FROM habit_logs WHERE id = %s",
            (log_id,)
        )
        return HabitLog.model_validate(row) if row else None

    async def insert_habit_log(self, log: HabitLog) -> HabitLog:
        values = log.model_dump()
        query = _insert_query("habit_logs", list(values), on_conflict_nothing=True)
        row = await self._fetchone("insert_habit_log", query, values)
        if row is None:
            # Already written by an earlier attempt of the same completion
            existing = await self.get_habit_log(log.id)
            logger.info(f"Habit log {log.id} already stored, reusing it")
            return existing
        return HabitLog.model_validate(row)

    async def list_habit_logs(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        habit_id: Optional[str] = None,
        descending: bool = True,
    ) -> List[HabitLog]:
        conditions = [sql.SQL("user_id = {}").format(sql.Placeholder("user_id"))]
        params: Dict[str, Any] = {"user_id": user_id}
        if habit_id is not None:
            conditions.append(sql.SQL("habit_id = {}").format(sql.Placeholder("habit_id")))
            params["habit_id"] = habit_id
        if since is not None:
            conditions.append(sql.SQL("completed_at >= {}").format(sql.Placeholder("since")))
            params["since"] = since
        if until is not None:
            conditions.append(sql.SQL("completed_at < {}").format(sql.Placeholder("until")))
            params["until"] = until

        query = sql.SQL("SELECT * FROM habit_logs WHERE {where} ORDER BY completed_at {direction}").format(
            where=sql.SQL(" AND ").join(conditions),
            direction=sql.SQL("DESC" if descending else "ASC"),
        )
        rows = await self._fetchall("list_habit_logs", query, params)
        return [HabitLog.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_items(
        self,
        required_level: Optional[int] = None,
        coin_cost: Optional[int] = None,
    ) -> List[CharacterItem]:
        query = "SELECT * FROM character_items WHERE TRUE"
        params: List[Any] = []
        if required_level is not None:
            query += " AND required_level = %s"
            params.append(required_level)
        if coin_cost is not None:
            query += " AND coin_cost = %s"
            params.append(coin_cost)
        query += " ORDER BY required_level ASC"
        rows = await self._fetchall("list_items", query, tuple(params))
        return [CharacterItem.model_validate(row) for row in rows]
