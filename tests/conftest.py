"""
Pytest configuration and shared fixtures for BookRank tests.

- ``fake_redis``: an in-memory stand-in for ``redis.asyncio.Redis`` that
  speaks bytes like a ``decode_responses=False`` client.
- ``engine`` / ``session``: an in-memory SQLite database with every table.
- ``catalog``: a small seeded catalog of authors, categories, books and chapters.
"""

import fnmatch
from datetime import date, datetime

import pytest
import pytest_asyncio
import redis
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from api.services.stats_buffer import StatsBufferService
from db.models import Author, Book, BookDailyStats, BookStats, Category, Chapter
from db.redis_database import RedisCircuitBreaker, RedisWrapper


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


class FakeRedis:
    """Just enough of ``redis.asyncio.Redis`` for the stats buffer.

    Set ``fail_with`` to an exception instance to make every command raise
    it, or add command names to ``fail_on`` to fail only those commands.
    ``lose_reply_with`` makes a transaction apply and then raise, as when
    the server's reply never arrives.
    """

    def __init__(self):
        self.strings: dict[str, bytes] = {}
        self.hashes: dict[str, dict[str, int]] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[str] = []
        self.fail_with: Exception | None = None
        self.fail_on: set[str] = set()
        self.lose_reply_with: Exception | None = None
        self.connection_pool = None

    def _check(self, command: str):
        self.calls.append(command)
        if self.fail_with is not None and (not self.fail_on or command in self.fail_on):
            raise self.fail_with

    @staticmethod
    def _encode(value) -> bytes:
        return value if isinstance(value, bytes) else str(value).encode()

    async def ping(self):
        self._check("ping")
        return True

    async def aclose(self):
        pass

    async def get(self, key):
        self._check("get")
        return self.strings.get(key)

    async def set(self, key, value, ex=None):
        self._check("set")
        self.strings[key] = self._encode(value)
        if ex:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        self._check("delete")
        deleted = 0
        for key in keys:
            if self.hashes.pop(key, None) is not None or self.strings.pop(key, None) is not None:
                deleted += 1
            self.ttls.pop(key, None)
        return deleted

    async def hgetall(self, name):
        self._check("hgetall")
        return {
            field.encode(): self._encode(value)
            for field, value in self.hashes.get(name, {}).items()
        }

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def scan(self, cursor=0, match=None, count=None):
        """Pages through the sorted keyspace ``count`` keys at a time."""
        self._check("scan")
        keys = sorted(set(self.hashes) | set(self.strings))
        page_size = count or 10
        page = keys[cursor : cursor + page_size]
        next_cursor = cursor + page_size if cursor + page_size < len(keys) else 0
        return next_cursor, [
            key.encode() for key in page if match is None or fnmatch.fnmatchcase(key, match)
        ]

    # Test helpers

    def put_hash(self, name: str, **fields):
        self.hashes[name] = dict(fields)


class FakePipeline:
    """MULTI/EXEC: queued commands apply together or not at all."""

    def __init__(self, redis: FakeRedis):
        self.redis = redis
        self.queued: list[tuple] = []

    def hincrby(self, name, key, amount=1):
        self.queued.append(("hincrby", name, key, amount))
        return self

    def expire(self, name, ex):
        self.queued.append(("expire", name, ex))
        return self

    async def execute(self):
        for command, *_ in self.queued:
            self.redis._check(command)

        results = []
        for command, name, *args in self.queued:
            if command == "hincrby":
                key, amount = args
                fields = self.redis.hashes.setdefault(name, {})
                fields[key] = fields.get(key, 0) + amount
                results.append(fields[key])
            else:
                exists = name in self.redis.hashes or name in self.redis.strings
                if exists:
                    self.redis.ttls[name] = args[0]
                results.append(exists)
        self.queued = []

        if self.redis.lose_reply_with is not None:
            raise self.redis.lose_reply_with
        return results


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_client(fake_redis) -> RedisWrapper:
    return RedisWrapper(
        fake_redis,
        circuit_breaker=RedisCircuitBreaker(failure_threshold=3, recovery_timeout=60),
        retry_attempts=2,
        retry_delay=0,
    )


@pytest.fixture
def stats_buffer(redis_client) -> StatsBufferService:
    return StatsBufferService(redis=redis_client)


@pytest.fixture
def redis_down(fake_redis) -> FakeRedis:
    fake_redis.fail_with = redis.exceptions.ConnectionError("Connection refused")
    return fake_redis


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def fresh_session(engine):
    """Open a new session to read committed state past the identity map."""

    def factory() -> AsyncSession:
        return AsyncSession(engine, expire_on_commit=False)

    return factory


@pytest_asyncio.fixture
async def catalog(session):
    """Four books across a male sub-category and a female category.

    ========  ===========================  =========  =======
    book_id   category                     channel    chapters
    ========  ===========================  =========  =======
    1         Fantasy • Eastern Fantasy    male       1, 2
    2         Fantasy                      male       none
    3         Romance                      female     1
    4         (no category)                -          none
    ========  ===========================  =========  =======
    """
    session.add_all(
        [
            Author(id=1, name="Er Gen"),
            Author(id=2, name="Gu Man"),
            Category(id=1, name="Fantasy", channel=1),
            Category(id=2, name="Eastern Fantasy", parent_id=1, channel=1),
            Category(id=3, name="Romance", channel=0),
        ]
    )
    await session.flush()
    session.add_all(
        [
            Book(
                id=1,
                title="Renegade Immortal",
                author_id=1,
                category_id=2,
                description="A cultivation story.",
                cover_image_url="https://img.example.com/1.jpg",
                status=1,
                word_count=3_000_000,
                update_time=datetime(2024, 5, 1, 8, 0),
            ),
            Book(
                id=2,
                title="Pursuit of the Truth",
                author_id=1,
                category_id=1,
                status=0,
                update_time=datetime(2024, 3, 3, 12, 0),
            ),
            Book(id=3, title="My Shining Star", author_id=2, category_id=3, status=1),
            Book(id=4, title="Untitled Draft", status=1),
        ]
    )
    await session.flush()
    session.add_all(
        [
            Chapter(book_id=1, chapter_number=1, title="Chapter 1", published_time=datetime(2024, 5, 30, 9, 0)),
            Chapter(book_id=1, chapter_number=2, title="Chapter 2", published_time=datetime(2024, 6, 1, 9, 0)),
            Chapter(book_id=3, chapter_number=1, title="First Meeting", published_time=datetime(2024, 4, 2, 9, 0)),
        ]
    )
    await session.commit()
    return session


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------


@pytest.fixture
def add_daily_stats(session):
    async def factory(stat_date: date, book_id: int, **counters) -> BookDailyStats:
        row = BookDailyStats(book_id=book_id, stat_date=stat_date, **counters)
        session.add(row)
        await session.commit()
        return row

    return factory


@pytest.fixture
def add_book_stats(session):
    async def factory(book_id: int, **counters) -> BookStats:
        row = BookStats(book_id=book_id, **counters)
        session.add(row)
        await session.commit()
        return row

    return factory
