"""Infrastructure startup and shutdown for a betterme client"""
import logging
from typing import Optional, Tuple

from betterme.config import DATABASE_URL, LOG_LEVEL, validate_config
from betterme.db.connection import Database
from betterme.db.postgres_store import PostgresStore
from betterme.db.schema import create_schema
from betterme.identity import SupabaseIdentityProvider
from betterme.services.container import ServiceContainer

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once for the process"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, level.upper(), logging.INFO)
    )


async def startup(
    database: Optional[Database] = None,
    ensure_schema: bool = False
) -> Tuple[ServiceContainer, Database]:
    """
    Validate configuration, open the database pool and build the services

    Returns:
        (container, database); pass the database to shutdown()
    """
    logger.info("Validating configuration...")
    validate_config()

    database = database or Database(DATABASE_URL)
    logger.info("Initializing database connection pool...")
    await database.init_pool()

    if ensure_schema:
        await create_schema(database)

    container = ServiceContainer(
        store=PostgresStore(database),
        identity=SupabaseIdentityProvider(),
    )
    logger.info("Service container initialized")
    return container, database


async def shutdown(database: Database) -> None:
    logger.info("Closing database connection...")
    await database.close_pool()
    logger.info("Shutdown complete")
