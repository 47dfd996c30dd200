"""Unit tests for startup and shutdown"""
import logging

import pytest
from unittest.mock import AsyncMock, patch

from betterme import main
from betterme.db.postgres_store import PostgresStore


@pytest.mark.asyncio
async def test_startup_builds_container():
    """Test pool initialization and container wiring"""
    database = AsyncMock()

    with patch("betterme.main.validate_config") as mock_validate, \
         patch("betterme.main.create_schema", new_callable=AsyncMock) as mock_schema:
        container, db = await main.startup(database=database, ensure_schema=True)

    mock_validate.assert_called_once()
    database.init_pool.assert_awaited_once()
    mock_schema.assert_awaited_once_with(database)
    assert db is database
    assert isinstance(container.store, PostgresStore)


@pytest.mark.asyncio
async def test_startup_invalid_config_does_not_connect():
    """Configuration errors stop startup before the pool opens"""
    database = AsyncMock()

    with patch("betterme.main.validate_config", side_effect=ValueError("SUPABASE_URL is required")):
        with pytest.raises(ValueError):
            await main.startup(database=database)

    database.init_pool.assert_not_called()


@pytest.mark.asyncio
async def test_shutdown_closes_pool():
    """Test shutdown"""
    database = AsyncMock()

    await main.shutdown(database)

    database.close_pool.assert_awaited_once()


def test_configure_logging_level():
    """Test the level name is applied"""
    with patch("betterme.main.logging.basicConfig") as mock_basic:
        main.configure_logging("debug")

    assert mock_basic.call_args.kwargs["level"] == logging.DEBUG
