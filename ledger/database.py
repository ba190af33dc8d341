"""
Database engine and sessions for the investment ledger.

Uses async SQLAlchemy; DATABASE_URL selects SQLite (default) or any other
async driver such as asyncpg.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ledger.config import DATABASE_URL, SQLALCHEMY_ECHO


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """Turn on FOREIGN KEY enforcement for every new SQLite connection.

    SQLite ships with it off; other backends are left alone.
    """
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(DATABASE_URL, echo=SQLALCHEMY_ECHO)
enable_sqlite_foreign_keys(engine)

# Session factory; objects stay usable after commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ledger models."""
    pass


async def init_db() -> None:
    """Create all tables that don't exist yet (no migrations)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncSession:
    """FastAPI dependency yielding one session per request."""
    async with AsyncSessionLocal() as session:
        yield session
