"""Dependency injection (no authentication)"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_planner.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped database session; one transaction per mutating request
    """
    async with SessionLocal() as session:
        yield session
