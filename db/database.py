import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from db.config import settings
from db.models import OWNED_TABLES

logger = logging.getLogger(__name__)


def _create_engine(uri: str, pool_size: int, max_overflow: int) -> AsyncEngine:
    return create_async_engine(
        uri,
        echo=False,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


# Flush and ranking writes go to the primary; ranking reads may use a replica.
ASYNC_ENGINE = _create_engine(settings.postgres_uri, settings.db_max_connections, 10)
ASYNC_READ_ENGINE = (
    _create_engine(settings.postgres_read_uri, settings.db_max_connections, 20)
    if settings.postgres_read_uri
    else ASYNC_ENGINE
)


@asynccontextmanager
async def get_background_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for dramatiq actors.

    Each actor call runs on the worker's own event loop, so it gets a
    short-lived engine instead of the module-level pools.
    """
    engine = _create_engine(settings.postgres_uri, 5, 10)
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session
    finally:
        await engine.dispose()


async def get_read_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency serving ranking reads."""
    async with AsyncSession(ASYNC_READ_ENGINE, expire_on_commit=False) as session:
        yield session


async def create_owned_tables(engine: AsyncEngine = ASYNC_ENGINE):
    """Create the stats and ranking tables if they do not exist yet.

    Catalog tables (books, authors, categories, chapters) belong to the
    catalog service and are never created here.
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all, tables=OWNED_TABLES)


async def _ping(engine: AsyncEngine):
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init(retries: int = 5):
    """Wait for PostgreSQL, then create the owned tables."""
    for attempt in range(1, retries + 1):
        try:
            await _ping(ASYNC_ENGINE)
            if ASYNC_READ_ENGINE is not ASYNC_ENGINE:
                await _ping(ASYNC_READ_ENGINE)
            await create_owned_tables()
        except Exception as e:
            if attempt == retries:
                logger.error(f"PostgreSQL unavailable after {retries} attempts: {e}")
                raise
            wait_time = 2 ** (attempt - 1)
            logger.warning(
                f"PostgreSQL not ready ({e}), retrying in {wait_time} seconds "
                f"(attempt {attempt}/{retries})"
            )
            await asyncio.sleep(wait_time)
        else:
            logger.info("PostgreSQL connection initialized and stats tables ready.")
            return


async def close():
    """Dispose of the connection pools."""
    await ASYNC_ENGINE.dispose()
    if ASYNC_READ_ENGINE is not ASYNC_ENGINE:
        await ASYNC_READ_ENGINE.dispose()
    logger.info("PostgreSQL connections closed.")
