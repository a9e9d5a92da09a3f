"""Per-day and cumulative book statistics models."""

from datetime import date, datetime

from sqlalchemy import BigInteger, DateTime, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from db.models.base import TimestampMixin


class BookDailyStats(TimestampMixin, table=True):
    """Counters flushed from the Redis buffer, one row per book and day.

    Rows are written with upsert semantics: a re-run for the same
    (book_id, stat_date) overwrites the counters instead of adding to them.
    """

    __tablename__ = "book_daily_stats"
    __table_args__ = (
        UniqueConstraint("book_id", "stat_date", name="uq_book_daily_stats_book_date"),
        Index("idx_book_daily_stats_date", "stat_date"),
    )

    id: int = Field(default=None, primary_key=True)
    book_id: int = Field(index=True)
    stat_date: date
    read_count: int = Field(default=0)
    recommend_votes: int = Field(default=0)
    monthly_tickets: int = Field(default=0)
    collection_count: int = Field(default=0)  # can be negative (uncollects)


class BookStats(SQLModel, table=True):
    """Running totals per book, incremented once per flushed daily row."""

    __tablename__ = "book_stats"

    book_id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    view_count: int = Field(default=0, sa_type=BigInteger)
    recommend_count: int = Field(default=0, sa_type=BigInteger)
    monthly_ticket_count: int = Field(default=0, sa_type=BigInteger)
    collection_count: int = Field(default=0, sa_type=BigInteger)
    last_updated_time: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),
    )
