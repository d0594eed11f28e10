"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support for PostgreSQL.
"""

import logging
import os
import signal

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from carpool.app.core.config import settings
from carpool.app.core.reliability import RetryExhaustedError, retry_with_fixed_delay

logger = logging.getLogger(__name__)

# Create async engine; no connection is opened until first use
engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    Anything not committed by the handler is rolled back on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_for_update(session: AsyncSession, model, pk):
    """
    Re-read one row by primary key, bypassing the identity map.

    Takes a row lock (SELECT ... FOR UPDATE) where the backend supports it,
    held until the surrounding transaction ends. Returns None if the row is gone.
    """
    result = await session.execute(
        select(model)
        .where(model.id == pk)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def ping_database(session: AsyncSession) -> bool:
    """Run ``SELECT 1``; report connectivity instead of raising."""
    try:
        await session.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database ping failed: %s", e)
        return False


async def _connect_and_create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def connect_database_with_retry() -> None:
    """
    Background startup task.

    Establishes the first connection (creating tables) with bounded retries and
    a fixed delay. When every attempt fails the process is asked to shut down.
    """
    try:
        await retry_with_fixed_delay(
            _connect_and_create_tables,
            attempts=settings.db_connect_max_attempts,
            delay_seconds=settings.db_connect_retry_delay_seconds,
            retry_on=(SQLAlchemyError, OSError),
            description="Database connection",
        )
    except RetryExhaustedError as e:
        logger.critical("Database unreachable, shutting down: %s", e)
        os.kill(os.getpid(), signal.SIGTERM)
        return
    logger.info("Database connection established")
