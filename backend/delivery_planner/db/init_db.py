import asyncio

from delivery_planner.db.session import engine
from delivery_planner.db.base import Base

# import every model so its table is registered on Base.metadata
from delivery_planner.models import (  # noqa: F401
    Zone, Area, Client, Vehicle, DeliveryOrder, DeliveryOrderItem, DeliveryBatch, AuditLog
)


async def init_db(bind=None) -> None:
    """
    Create all tables
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_tables_exist() -> None:
    """
    Called at application startup
    """
    await init_db()


if __name__ == "__main__":
    asyncio.run(init_db())
