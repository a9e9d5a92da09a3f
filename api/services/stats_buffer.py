"""Write-behind buffer for per-book engagement counters.

Every (day, book) pair owns one Redis hash::

    {stats_key_prefix}:{YYYY-MM-DD}:{book_id}   e.g. book:stats:2024-06-01:42

with the fields ``read_count``, ``recommend_votes``, ``monthly_tickets`` and
``collection_count``. Fields are only ever changed with ``HINCRBY`` so
concurrent increments cannot lose updates, and every write refreshes the
key's TTL in the same transaction so an unflushed day eventually expires
on its own.

Any key under the prefix that does not match this shape exactly is reported
as malformed by ``parse_stats_key`` and skipped by readers.
"""

import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import date

from db.config import settings
from db.enums import StatType
from db.exceptions import StoreUnavailable
from db.redis_database import RedisWrapper
from db.schemas import BufferedRecord, DailyCounters
from utils import chunked
from utils.periods import today

from .base import BaseService

# ASCII digits only; book ids are positive without leading zeros.
_KEY_SUFFIX_RE = re.compile(r"([0-9]{4}-[0-9]{2}-[0-9]{2}):([1-9][0-9]*)")


def stats_key(day: date, book_id: int, prefix: str | None = None) -> str:
    return f"{prefix or settings.stats_key_prefix}:{day.isoformat()}:{book_id}"


def stats_key_pattern(day: date, prefix: str | None = None) -> str:
    return f"{prefix or settings.stats_key_prefix}:{day.isoformat()}:*"


def parse_stats_key(key: str | bytes, prefix: str | None = None) -> tuple[date, int] | None:
    """Split a counter key into (day, book_id), or None if it is malformed."""
    if isinstance(key, bytes):
        key = key.decode(errors="replace")
    head = f"{prefix or settings.stats_key_prefix}:"
    if not key.startswith(head):
        return None
    match = _KEY_SUFFIX_RE.fullmatch(key[len(head) :])
    if not match:
        return None
    try:
        day = date.fromisoformat(match.group(1))
    except ValueError:
        return None
    return day, int(match.group(2))


@dataclass
class BufferSnapshot:
    """Everything read from the buffer for one day."""

    stat_date: date
    records: list[BufferedRecord] = field(default_factory=list)
    malformed_keys: list[str] = field(default_factory=list)
    empty_keys: list[str] = field(default_factory=list)

    @property
    def scanned(self) -> int:
        return len(self.records) + len(self.malformed_keys) + len(self.empty_keys)


class StatsBufferService(BaseService):
    """Increments and reads the buffered daily counters in Redis."""

    def __init__(
        self,
        redis: RedisWrapper | None = None,
        logger: logging.Logger | None = None,
    ):
        super().__init__(session=None, redis=redis, logger=logger)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def increment(
        self,
        book_id: int,
        stat_type: StatType,
        count: int = 1,
        *,
        day: date | None = None,
    ) -> int:
        """Atomically add ``count`` to one counter and refresh the key's TTL.

        Both commands go out as one transaction and are never re-sent, so a
        ``StoreUnavailable`` means the increment was applied at most once.

        Returns the counter value after the increment.

        Raises:
            StoreUnavailable: Redis could not be reached.
        """
        if book_id <= 0:
            raise ValueError(f"Invalid book id: {book_id}")
        key = stats_key(day or today(), book_id)
        value = await self.redis.hincrby_with_expire(
            key, stat_type.value, count, settings.stats_key_ttl
        )
        self.logger.debug(f"Incremented {stat_type.value} of book {book_id} by {count}")
        return value

    async def increment_read_count(self, book_id: int, count: int = 1) -> int:
        return await self.increment(book_id, StatType.READ_COUNT, count)

    async def increment_recommend_votes(self, book_id: int, count: int = 1) -> int:
        return await self.increment(book_id, StatType.RECOMMEND_VOTES, count)

    async def increment_monthly_tickets(self, book_id: int, count: int = 1) -> int:
        return await self.increment(book_id, StatType.MONTHLY_TICKETS, count)

    async def increment_collection_count(self, book_id: int, count: int) -> int:
        """``count`` is negative when a reader removes the book from their shelf."""
        return await self.increment(book_id, StatType.COLLECTION_COUNT, count)

    async def delete_keys(self, keys: list[str]) -> int:
        deleted = 0
        for batch in chunked(keys, settings.stats_delete_batch_size):
            deleted += await self.redis.delete(*batch) or 0
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_stats_for_date(self, book_id: int, day: date) -> DailyCounters:
        data = await self.redis.hgetall(stats_key(day, book_id))
        return DailyCounters.from_redis_hash(data)

    async def get_today_stats(self, book_id: int) -> DailyCounters:
        return await self.get_stats_for_date(book_id, today())

    async def scan_keys_for_date(self, day: date) -> AsyncIterator[str]:
        """Yield each counter key of ``day`` once, paging through SCAN."""
        seen = set()
        async for key in self.redis.scan_iter(
            match=stats_key_pattern(day), count=settings.stats_scan_count
        ):
            if key in seen:
                continue
            seen.add(key)
            yield key

    async def read_records_for_date(self, day: date) -> BufferSnapshot:
        """Read every counter hash of ``day``.

        Malformed keys and hashes that vanished between SCAN and HGETALL are
        collected separately instead of aborting the read. Each book yields at
        most one record; any further key for the same book counts as malformed.
        """
        snapshot = BufferSnapshot(stat_date=day)
        seen_books = set()
        async for key in self.scan_keys_for_date(day):
            parsed = parse_stats_key(key)
            if parsed is None or parsed[0] != day or parsed[1] in seen_books:
                self.logger.warning(f"Skipping malformed stats key: {key}")
                snapshot.malformed_keys.append(key)
                continue

            data = await self.redis.hgetall(key)
            if not data:
                snapshot.empty_keys.append(key)
                continue

            seen_books.add(parsed[1])
            snapshot.records.append(
                BufferedRecord(
                    key=key,
                    book_id=parsed[1],
                    stat_date=day,
                    counters=DailyCounters.from_redis_hash(data),
                )
            )
        self.logger.info(f"Read buffered stats for {day}: {len(snapshot.records)} books")
        return snapshot

    async def get_all_books_stats_for_date(self, day: date) -> dict[int, DailyCounters]:
        snapshot = await self.read_records_for_date(day)
        return {record.book_id: record.counters for record in snapshot.records}

    async def get_active_book_ids(self, day: date | None = None) -> list[int]:
        """Books with buffered counters for ``day`` (today by default)."""
        book_ids = set()
        async for key in self.scan_keys_for_date(day or today()):
            parsed = parse_stats_key(key)
            if parsed is None:
                self.logger.warning(f"Skipping malformed stats key: {key}")
                continue
            book_ids.add(parsed[1])
        return sorted(book_ids)

    async def health_check(self) -> dict:
        """Write and read back a probe key, then report the connection state."""
        probe_key = f"{settings.stats_key_prefix}:health"
        status = {"write_test": False, "read_test": False}
        try:
            await self.redis.set(probe_key, "1", ex=60)
            status["write_test"] = True
            status["read_test"] = await self.redis.get(probe_key) is not None
        except StoreUnavailable as e:
            status["error"] = str(e)
        status.update(await self.redis.health_check())
        return status
