"""Initialize the database schema."""

from sqlalchemy.ext.asyncio import AsyncEngine

from rentsync.core.logging import logger
from rentsync.models._base import Base


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet.

    Args:
    ----
        engine (AsyncEngine): The engine to create the tables with.
    """
    # Registers every model on Base.metadata
    import rentsync.models  # noqa: F401

    logger.info("Creating missing database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
