"""
Database Manager
Async SQLAlchemy engine and session handling
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from r6tracker.core.config import settings
from r6tracker.database.schema import Base


class DatabaseManager:
    """Owns the async engine and session factory"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.engine: Optional[AsyncEngine] = None
        self.SessionLocal: Optional[async_sessionmaker] = None
        self.logger = logging.getLogger(__name__)

    async def initialize(self):
        """Creates the engine, the session factory and any missing tables"""
        try:
            self.engine = create_async_engine(self.database_url, future=True)
            self.SessionLocal = async_sessionmaker(self.engine, expire_on_commit=False)
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self.logger.info(f"Database initialized ({self.engine.url.render_as_string(hide_password=True)})")
        except Exception as e:
            self.logger.error(f"Failed to initialize database: {e}")
            self.engine = None
            self.SessionLocal = None
            raise

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Transactional session: commits on success, rolls back on error"""
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        async with self.SessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> dict:
        try:
            async with self.session() as s:
                await s.execute(text("SELECT 1"))
            return {"database": "healthy"}
        except Exception as e:
            self.logger.error(f"Database health check failed: {e}")
            return {"database": "unhealthy", "error": str(e)}

    async def close(self):
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database engine disposed")
        self.engine = None
        self.SessionLocal = None
