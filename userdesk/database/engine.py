"""
Async Database Engine

This module provides async database connectivity using SQLAlchemy 2.0+
with support for SQLite and PostgreSQL.
"""

import logging
from typing import AsyncGenerator, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from config import Settings, get_settings

logger = logging.getLogger(__name__)

# Global database engine and session factory
async_engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker] = None

# Base class for SQLAlchemy models
Base = declarative_base()


async def init_db(settings: Optional[Settings] = None) -> None:
    """
    Initialize async database connections.
    Sets up the global engine and session factory.
    """
    global async_engine, async_session_factory

    settings = settings or get_settings()

    if settings.DATABASE_URL.startswith("sqlite"):
        # One shared connection, so in-memory databases survive across sessions
        async_engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            poolclass=StaticPool,
            connect_args={
                "check_same_thread": False,
                "timeout": 30,
            },
        )
    else:
        async_engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            pool_recycle=3600,  # Recycle connections after 1 hour
        )

    async_session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )

    logger.info(f"✅ Database engine initialized: {settings.DATABASE_URL.split('://')[0]}")


async def close_db() -> None:
    """Close database connections and cleanup."""
    global async_engine, async_session_factory

    if async_engine:
        await async_engine.dispose()
        logger.info("✅ Async database connections closed")

    async_engine = None
    async_session_factory = None


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get async database session for dependency injection.

    Yields:
        AsyncSession: Database session for async operations
    """
    if not async_session_factory:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables() -> None:
    """Create database tables from SQLAlchemy models."""
    if not async_engine:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    # Register the models on Base.metadata
    from . import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("✅ Database tables created/updated")


async def health_check() -> bool:
    """
    Check database connectivity for health checks.

    Returns:
        bool: True if database is accessible, False otherwise
    """
    if not async_engine:
        return False

    try:
        async with async_engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
