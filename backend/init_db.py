import asyncio
import logging

from delivery_planner.db.init_db import init_db as create_tables

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_db() -> None:
    """
    Create the database schema
    """
    try:
        logger.info("Creating database tables...")
        await create_tables()
        logger.info("Database initialised")
    except Exception as e:
        logger.error(f"Database initialisation failed: {e}")
        raise

if __name__ == "__main__":
    asyncio.run(init_db())
