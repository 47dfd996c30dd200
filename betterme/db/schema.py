"""Database schema for the progression tables"""
import logging

from betterme.db.connection import Database

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    email TEXT,
    character_level INTEGER NOT NULL DEFAULT 1 CHECK (character_level >= 1),
    total_exp INTEGER NOT NULL DEFAULT 0,
    current_exp INTEGER NOT NULL DEFAULT 0,
    exp_to_next INTEGER NOT NULL DEFAULT 100,
    coins INTEGER NOT NULL DEFAULT 0 CHECK (coins >= 0),
    equipped_items TEXT[] NOT NULL DEFAULT '{}',
    unlocked_items TEXT[] NOT NULL DEFAULT '{}',
    login_streak INTEGER NOT NULL DEFAULT 0 CHECK (login_streak >= 0),
    last_login TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS habits (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES profiles(id),
    name TEXT NOT NULL,
    category TEXT NOT NULL
        CHECK (category IN ('health', 'learning', 'productivity', 'self-care', 'social')),
    habit_type TEXT NOT NULL DEFAULT 'good' CHECK (habit_type IN ('good', 'bad')),
    exp_value INTEGER NOT NULL DEFAULT 20 CHECK (exp_value BETWEEN 5 AND 50),
    difficulty TEXT NOT NULL DEFAULT 'medium' CHECK (difficulty IN ('easy', 'medium', 'hard')),
    streak INTEGER NOT NULL DEFAULT 0 CHECK (streak >= 0),
    best_streak INTEGER NOT NULL DEFAULT 0 CHECK (best_streak >= streak),
    notes TEXT,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS habit_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES profiles(id),
    habit_id TEXT NOT NULL REFERENCES habits(id),
    completed_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    exp_earned INTEGER NOT NULL,
    streak_bonus INTEGER NOT NULL DEFAULT 0,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_habit_logs_user_completed
    ON habit_logs (user_id, completed_at DESC);

CREATE TABLE IF NOT EXISTS character_items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL
        CHECK (category IN ('hat', 'shirt', 'accessory', 'effect', 'companion')),
    required_level INTEGER NOT NULL DEFAULT 1,
    coin_cost INTEGER NOT NULL DEFAULT 0,
    sprite_layer TEXT,
    description TEXT
);
"""


async def create_schema(database: Database) -> None:
    """Create all tables if they do not exist"""
    async with database.connection() as conn:
        await conn.execute(SCHEMA_SQL)
        await conn.commit()
    logger.info("Database schema ensured")
