"""
Database session management and configuration - async SQLAlchemy.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from support_chat.config.settings import settings
from support_chat.models.domain import Base


class Database:
    """
    Async database connection manager

    Handles engine creation, schema bootstrap and session management.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        """
        Initialize database engine (no connection is opened yet)

        Args:
            url: Async SQLAlchemy URL (defaults to settings.database_url)
            echo: Log every SQL statement (defaults to settings.database_echo)
        """
        self.url = make_url(url or settings.database_url)
        self._initialized = False
        self._init_lock = asyncio.Lock()

        if self.url.get_backend_name() == "sqlite":
            self._ensure_sqlite_directory()

        logger.info(f"Database configured: {self.url.render_as_string(hide_password=True)}")

        self.engine = create_async_engine(
            self.url,
            echo=settings.database_echo if echo is None else echo,
            pool_pre_ping=True,
        )

        if self.url.get_backend_name() == "sqlite":
            self._register_sqlite_pragmas()

        # Session factory
        self.SessionLocal = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

    def _ensure_sqlite_directory(self):
        database = self.url.database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    def _register_sqlite_pragmas(self):
        """Enable WAL mode and foreign keys on every new SQLite connection"""
        @event.listens_for(self.engine.sync_engine, "connect")
        def set_sqlite_pragmas(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA busy_timeout=5000")
            finally:
                cursor.close()

    async def async_init(self):
        """Create tables if they do not exist yet (idempotent)"""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            self._initialized = True
        logger.info("Database schema ready")

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope around a series of operations

        Usage:
            async with db.session_scope() as session:
                session.add(message)
        """
        await self.async_init()
        session = self.SessionLocal()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            await session.close()

    async def close(self):
        """Dispose the engine and its pooled connections"""
        await self.engine.dispose()
        logger.debug("Database engine disposed")


# Global database instance (lazy initialization)
_db_instance: Optional[Database] = None


def get_database() -> Database:
    """Get or create global database instance"""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
    return _db_instance


async def close_database():
    """Close the global database instance if one was created"""
    global _db_instance
    if _db_instance is not None:
        await _db_instance.close()
        _db_instance = None
