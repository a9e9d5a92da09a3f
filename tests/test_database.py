"""
Tests for PostgreSQL startup in db/database.py
"""

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel

from db import database
from db.models import OWNED_TABLES


@pytest.fixture
def startup(monkeypatch):
    """Record pings and table creation instead of touching PostgreSQL."""
    calls = {"pings": 0, "created": 0, "sleeps": []}

    async def ping(engine):
        calls["pings"] += 1
        if calls["pings"] <= calls.get("failures", 0):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def create_owned_tables():
        calls["created"] += 1

    async def sleep(seconds):
        calls["sleeps"].append(seconds)

    monkeypatch.setattr(database, "_ping", ping)
    monkeypatch.setattr(database, "create_owned_tables", create_owned_tables)
    monkeypatch.setattr(database.asyncio, "sleep", sleep)
    return calls


class TestInit:
    @pytest.mark.asyncio
    async def test_creates_tables_once_reachable(self, startup):
        startup["failures"] = 2

        await database.init()

        assert startup["pings"] == 3
        assert startup["created"] == 1
        assert startup["sleeps"] == [1, 2]

    @pytest.mark.asyncio
    async def test_gives_up_after_retries(self, startup):
        startup["failures"] = 100

        with pytest.raises(OperationalError):
            await database.init(retries=3)

        assert startup["pings"] == 3
        assert startup["created"] == 0
        assert startup["sleeps"] == [1, 2]


class TestOwnedTables:
    @pytest.mark.asyncio
    async def test_only_stats_and_ranking_tables(self, engine):
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)

        await database.create_owned_tables(engine)

        async with engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: set(inspect(sync_conn).get_table_names())
            )
        assert tables == {table.name for table in OWNED_TABLES}
        assert tables == {"book_daily_stats", "book_stats", "book_rankings"}
