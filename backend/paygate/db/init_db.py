"""
Database Initialization

Creates the SQLite schema (merchants, api_keys, payments, transactions)
and provides the async session factory used by the API layer.
"""
from pathlib import Path
from typing import AsyncGenerator, Optional
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..config import settings
from .models import Base

logger = logging.getLogger(__name__)


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    """Enable WAL, lock timeout and foreign key enforcement on each connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second timeout
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for_path(database_path: str) -> AsyncEngine:
    """
    Build an async engine over a SQLite file with pragmas attached.

    Args:
        database_path: Filesystem path of the SQLite database

    Returns:
        AsyncEngine bound to sqlite+aiosqlite
    """
    db_engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}",
        echo=False,
        connect_args={
            "timeout": 30,  # 30 second timeout for lock acquisition
            "check_same_thread": False
        },
        pool_pre_ping=True,
    )
    event.listen(db_engine.sync_engine, "connect", _set_sqlite_pragmas)
    return db_engine


def create_session_factory(db_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


engine = create_engine_for_path(settings.database_path)
AsyncSessionLocal = create_session_factory(engine)


async def initialize_database(db_engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables if they do not exist.

    Called during FastAPI startup; tests pass their own engine.
    """
    db_engine = db_engine or engine
    if db_engine is engine:
        db_path = Path(settings.database_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initializing database at: {db_path}")

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("All tables created successfully")


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions in FastAPI.

    Usage:
        @router.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


# Alias for FastAPI Depends
get_db = get_async_session
