"""
Database configuration and session management
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool
from sqlalchemy import event
from fastapi import Request
import logging
from contextlib import asynccontextmanager

from staybook.config import Settings
from staybook.core.exceptions import StaybookException

logger = logging.getLogger(__name__)

# Create declarative base
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Owns the async engine and session factory for one process.

    Created at application startup and handed to request handlers through
    ``app.state``; disposed at shutdown.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # Create async session factory
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseManager":
        if settings.is_testing or settings.DATABASE_URL.startswith("sqlite"):
            # NullPool doesn't accept pool parameters
            return cls(
                settings.DATABASE_URL,
                echo=settings.DB_ECHO,
                poolclass=NullPool,
            )
        return cls(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            poolclass=AsyncAdaptedQueuePool,
        )

    async def init_models(self):
        """
        Create tables for all registered models
        """
        # Register every model on Base.metadata
        import staybook.models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    async def dispose(self):
        """
        Close database connections
        """
        await self.engine.dispose()
        logger.info("Database connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            yield session


@asynccontextmanager
async def transaction(session: AsyncSession, isolation_level: Optional[str] = None):
    """
    Run a block inside one database transaction.

    Commits on success and rolls back on any exception. If the session is
    already inside a transaction the block joins it and the outer owner
    decides the outcome. ``isolation_level`` is only applied on PostgreSQL.
    """
    if session.in_transaction():
        yield session
        return

    try:
        async with session.begin():
            if isolation_level and session.bind is not None and session.bind.dialect.name == "postgresql":
                # Must be the first statement of the transaction
                await session.connection(execution_options={"isolation_level": isolation_level})
            yield session
    except StaybookException as e:
        logger.info(f"Transaction rolled back: {e.code}: {e.message}")
        raise
    except Exception as e:
        logger.error(f"Transaction rolled back: {type(e).__name__}: {e}")
        raise


def get_db_manager(request: Request) -> DatabaseManager:
    return request.app.state.db


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session with explicit transaction management
    Each service call opens its own transaction boundary
    """
    db_manager = get_db_manager(request)
    async with db_manager.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        # async with handles session.close() automatically
