"""Ranking snapshot model."""

from datetime import date, datetime

from sqlalchemy import DateTime, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from db.models.base import utc_now


class BookRanking(SQLModel, table=True):
    """One ranked book inside a (rank_type, stat_type, period) snapshot."""

    __tablename__ = "book_rankings"
    __table_args__ = (
        UniqueConstraint(
            "rank_type",
            "stat_type",
            "period_start",
            "period_end",
            "book_id",
            name="uq_book_rankings_period_book",
        ),
        Index("idx_book_rankings_lookup", "rank_type", "stat_type", "period_end"),
    )

    id: int = Field(default=None, primary_key=True)
    book_id: int = Field(index=True)
    rank_type: str  # daily, weekly, monthly, peak
    stat_type: str  # counter name, or all/male/female for peak
    rank_position: int
    score: float = Field(default=0)
    period_start: date
    period_end: date
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
    )
