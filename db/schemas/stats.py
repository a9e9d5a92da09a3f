"""Schemas for buffered and flushed book counters."""

import logging
from datetime import date

from pydantic import BaseModel

from db.enums import StatType

logger = logging.getLogger(__name__)


def _to_int(value) -> int:
    if value is None:
        return 0
    if isinstance(value, bytes):
        value = value.decode()
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Cannot convert counter value {value!r} to int, using 0")
        return 0


class DailyCounters(BaseModel):
    """One book's counters for one day. Missing fields default to 0."""

    read_count: int = 0
    recommend_votes: int = 0
    monthly_tickets: int = 0
    collection_count: int = 0

    @classmethod
    def from_redis_hash(cls, data: dict) -> "DailyCounters":
        """Build from a raw ``HGETALL`` reply (bytes or str keys and values)."""
        decoded = {
            (k.decode() if isinstance(k, bytes) else k): v for k, v in data.items()
        }
        return cls(**{field.value: _to_int(decoded.get(field.value)) for field in StatType})

    def get(self, stat_type: StatType) -> int:
        return getattr(self, stat_type.value)


class BufferedRecord(BaseModel):
    """A counter hash read from Redis during a flush."""

    key: str
    book_id: int
    stat_date: date
    counters: DailyCounters


class IncrementResponse(BaseModel):
    book_id: int
    stat_type: StatType
    delta: int
    value: int


class BookIdsResponse(BaseModel):
    stat_date: date
    book_ids: list[int]
    count: int


class BookDayStatsResponse(BaseModel):
    book_id: int
    stat_date: date
    stats: DailyCounters


class DayStatsResponse(BaseModel):
    """Buffered counters of every book for one day, keyed by book id."""

    stat_date: date
    books: dict[int, DailyCounters]
    count: int
