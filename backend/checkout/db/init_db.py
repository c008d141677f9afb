"""
Database Initialization

Creates the SQLite schema for the checkout backend and provides the async
engine and request-scoped sessions used by FastAPI.
Tables: customers, products, transactions, deliveries
"""
import logging
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker

from ..config import settings
from ..exceptions import CheckoutError
from .models import Base

logger = logging.getLogger(__name__)


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    """Enable WAL mode and foreign keys on every new SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second timeout
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(database_url: str) -> AsyncEngine:
    """
    Create an async engine with the SQLite pragmas installed.

    Args:
        database_url: SQLAlchemy URL, e.g. sqlite+aiosqlite:///./checkout.db
    """
    engine = create_async_engine(
        database_url,
        echo=False,
        connect_args={
            "timeout": 30,  # 30 second timeout for lock acquisition
            "check_same_thread": False
        },
    )
    event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
    return engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ============================================================================
# SQLAlchemy Async Session Setup for FastAPI
# ============================================================================

DATABASE_URL = f"sqlite+aiosqlite:///{settings.database_path}"
engine = create_engine_for(DATABASE_URL)
AsyncSessionLocal = create_session_factory(engine)


async def create_tables(bind: AsyncEngine) -> None:
    """Create all tables and indexes if they do not exist."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def initialize_database() -> None:
    """
    Initialize the database with all required tables.

    This function is called during FastAPI startup.
    """
    db_path = Path(settings.database_path)
    logger.info(f"Initializing database at: {db_path}")

    # Create database directory if it doesn't exist
    db_path.parent.mkdir(parents=True, exist_ok=True)

    await create_tables(engine)
    logger.info(f"Database initialized successfully at {db_path}")


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting a request-scoped database transaction.

    Everything a request writes commits together when the handler returns.
    Business failures (CheckoutError) still commit what was written before
    them, e.g. a transaction marked ERROR; any other exception rolls back.

    Usage:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except CheckoutError:
            await session.commit()
            raise
        await session.commit()


# Alias for FastAPI Depends
get_db = get_async_session
