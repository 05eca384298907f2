# This project was developed with assistance from AI tools.
"""Async engine, session factory, and FastAPI session dependency.

The engine is created lazily by SQLAlchemy on first connect, so importing this
module never opens a connection.
"""

import logging
from collections.abc import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import db_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = create_async_engine(
    db_settings.DATABASE_URL,
    echo=db_settings.SQL_ECHO,
    pool_size=db_settings.POOL_SIZE,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


class DatabaseService:
    """Thin wrapper around the engine used by health checks and shutdown."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def health_check(self) -> bool:
        """Return True when a trivial query round-trips."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self.engine.dispose()


db_service = DatabaseService(engine=engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: yield a session scoped to one request."""
    async with SessionLocal() as session:
        yield session


async def get_db_service() -> DatabaseService:
    return db_service
