"""
Database Configuration and Session Management
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
import structlog

from medspa.core.config import settings, DATABASE_CONFIG

logger = structlog.get_logger()


def _normalize_database_url(database_url: str) -> str:
    """Map plain driver URLs onto their async drivers"""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def build_engine(database_url: str, **overrides):
    """
    Create an async engine for the given URL

    Pool sizing only applies to server databases; SQLite uses the
    dialect's default pool.
    """
    database_url = _normalize_database_url(database_url)
    engine_kwargs = {"echo": settings.ENVIRONMENT == "development" and settings.DEBUG}

    if "postgresql" in database_url:
        # Pool sizing does not apply when the caller picks the pool class
        if "poolclass" not in overrides:
            engine_kwargs.update(DATABASE_CONFIG)
        engine_kwargs["connect_args"] = {
            "server_settings": {
                "application_name": "medspa-api",
            }
        }

    engine_kwargs.update(overrides)
    return create_async_engine(database_url, **engine_kwargs)


engine = build_engine(settings.DATABASE_URL)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Create declarative base
Base = declarative_base()


def get_session_factory(request: Request) -> async_sessionmaker:
    """
    Session factory bound to the running application

    Tests and embedded deployments swap the factory through
    ``app.state.session_factory``.
    """
    return getattr(request.app.state, "session_factory", None) or AsyncSessionLocal


# Database dependency for FastAPI
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency for FastAPI endpoints
    Ensures proper session cleanup and error handling
    """
    session_factory = get_session_factory(request)
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Health check function
async def check_database_health(db_engine=None) -> bool:
    """
    Check database connectivity and basic functionality
    Used by health check endpoints
    """
    try:
        async with (db_engine or engine).begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False


# Database initialization
async def init_database(db_engine=None):
    """
    Initialize database tables
    Called during application startup
    """
    try:
        async with (db_engine or engine).begin() as conn:
            # Import all models to ensure they're registered
            from medspa import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e))
        raise


# Cleanup function
async def close_database(db_engine=None):
    """
    Close database connections
    Called during application shutdown
    """
    try:
        await (db_engine or engine).dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))
