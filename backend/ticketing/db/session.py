"""
Async engine construction and schema bootstrap.

The engine is created once in the application lifespan and handed to the
InventoryStore; nothing in this module holds a global connection.
"""

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ticketing.core.config import Settings
from ticketing.core.logging import get_logger
from ticketing.db.base import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(url: str, settings: Settings) -> AsyncEngine:
    """
    Build the async engine with pool sizing from settings.
    Pool options are skipped for SQLite, whose dialect picks its own pool.
    """
    is_sqlite = make_url(url).get_backend_name() == "sqlite"

    if is_sqlite:
        engine = create_async_engine(url, echo=settings.DEBUG)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(
            url,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )
    return engine


async def create_tables(engine: AsyncEngine) -> None:
    """Create tickets and purchases if absent. Safe to call on every startup."""
    # Register models on the metadata
    from ticketing.models import Purchase, Ticket  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info("tables_ready", tables=sorted(Base.metadata.tables))
