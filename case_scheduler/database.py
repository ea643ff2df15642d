"""
Database configuration and session management.

Provides:
- Async engine creation with proper configuration per backend
- AsyncSessionLocal factory used by the negotiation engine
- Database initialization utilities
"""

import logging

from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from case_scheduler.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if settings.is_production:
    settings.validate_production_config()


def get_async_database_url(sync_url: str) -> str:
    """Convert sync database URL to async URL."""
    if "sqlite" in sync_url.lower() and "+aiosqlite" not in sync_url:
        return sync_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    elif sync_url.lower().startswith("postgresql://"):
        return sync_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return sync_url


def build_async_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given (sync or async) database URL.

    SQLite in-memory databases use a StaticPool so every session sees the
    same database.
    """
    async_url = get_async_database_url(database_url)

    if "sqlite" in async_url.lower():
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in async_url:
            kwargs["poolclass"] = StaticPool
        return create_async_engine(async_url, echo=echo, **kwargs)

    return create_async_engine(
        async_url,
        pool_size=5,  # Maximum number of connections in pool
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Test connections before using them
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used for one unit of work per session."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints in SQLite."""
    if "sqlite" not in type(dbapi_conn).__module__:
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_engine = build_async_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
)

AsyncSessionLocal = build_session_factory(async_engine)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """
    Initialize database by creating all tables.

    This is useful for development and testing. In production, use Alembic migrations.
    """
    from case_scheduler.models.base import Base

    engine = engine or async_engine
    logger.info("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")


async def check_connection() -> bool:
    """
    Test database connection.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
