"""Shared helpers for CRUD modules."""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel.ext.asyncio.session import AsyncSession


def upsert_insert(session: AsyncSession, model):
    """Return an ``INSERT`` supporting ``on_conflict_do_update`` for the session's dialect.

    PostgreSQL in production; SQLite is accepted so the same statements run
    against the in-memory test database.
    """
    if session.bind.dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
