"""
Ranking CRUD operations.

Calculation queries read ``book_daily_stats`` / ``book_stats``; snapshot
queries read and replace ``book_rankings``.
"""

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, insert as sa_insert
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from db.enums import StatType
from db.models import Book, BookDailyStats, BookRanking, BookStats, Category
from db.models.base import utc_now
from db.schemas import ScoredBook
from utils.periods import Period

logger = logging.getLogger(__name__)


def _rank(rows) -> list[ScoredBook]:
    return [
        ScoredBook(rank=position, book_id=book_id, score=float(score))
        for position, (book_id, score) in enumerate(rows, start=1)
    ]


# =============================================================================
# CALCULATION
# =============================================================================


async def calculate_counter_ranking(
    session: AsyncSession,
    stat_type: StatType,
    start_date: date,
    end_date: date,
    limit: int,
) -> list[ScoredBook]:
    """Sum one counter per book over the closed range and rank the positive totals.

    Ties are broken by book_id ascending so the order is deterministic.
    """
    column = getattr(BookDailyStats, stat_type.value)
    total = func.sum(column)
    query = (
        select(BookDailyStats.book_id, total)
        .where(
            BookDailyStats.stat_date >= start_date,
            BookDailyStats.stat_date <= end_date,
        )
        .group_by(BookDailyStats.book_id)
        .having(total > 0)
        .order_by(total.desc(), BookDailyStats.book_id.asc())
        .limit(limit)
    )
    result = await session.exec(query)
    return _rank(result.all())


async def calculate_peak_ranking(
    session: AsyncSession,
    score: ColumnElement,
    limit: int,
    *,
    channel: int | None = None,
) -> list[ScoredBook]:
    """Rank existing books by a score expression over their cumulative stats.

    ``channel`` restricts to books whose category belongs to that channel.
    """
    query = select(BookStats.book_id, score).join(Book, Book.id == BookStats.book_id)
    if channel is not None:
        query = query.join(Category, Category.id == Book.category_id).where(
            Category.channel == channel
        )
    query = (
        query.where(score > 0)
        .order_by(score.desc(), BookStats.book_id.asc())
        .limit(limit)
    )
    result = await session.exec(query)
    return _rank(result.all())


# =============================================================================
# SNAPSHOTS
# =============================================================================


async def delete_ranking_by_period(
    session: AsyncSession,
    rank_type: str,
    stat_type: str,
    period_start: date,
    period_end: date,
) -> int:
    """Delete every entry of one ranking snapshot."""
    result = await session.execute(
        sa_delete(BookRanking).where(
            BookRanking.rank_type == rank_type,
            BookRanking.stat_type == stat_type,
            BookRanking.period_start == period_start,
            BookRanking.period_end == period_end,
        )
    )
    removed = result.rowcount or 0
    logger.debug(f"Deleted {removed} {rank_type}/{stat_type} ranking entries for {period_start}..{period_end}")
    return removed


async def insert_book_rankings(
    session: AsyncSession,
    rank_type: str,
    stat_type: str,
    period_start: date,
    period_end: date,
    items: Sequence[ScoredBook],
) -> int:
    """Bulk insert ranking entries for one snapshot."""
    if not items:
        return 0
    now = utc_now()
    await session.execute(
        sa_insert(BookRanking),
        [
            {
                "book_id": item.book_id,
                "rank_type": rank_type,
                "stat_type": stat_type,
                "rank_position": item.rank,
                "score": item.score,
                "period_start": period_start,
                "period_end": period_end,
                "created_at": now,
            }
            for item in items
        ],
    )
    return len(items)


async def get_saved_ranking(
    session: AsyncSession,
    rank_type: str,
    stat_type: str,
    period_start: date,
    period_end: date,
    *,
    limit: int = 100,
) -> Sequence[BookRanking]:
    """Get a stored snapshot ordered by rank."""
    query = (
        select(BookRanking)
        .where(
            BookRanking.rank_type == rank_type,
            BookRanking.stat_type == stat_type,
            BookRanking.period_start == period_start,
            BookRanking.period_end == period_end,
        )
        .order_by(BookRanking.rank_position.asc())
        .limit(limit)
    )
    result = await session.exec(query)
    return result.all()


async def find_latest_ranking_period(
    session: AsyncSession,
    rank_type: str,
    stat_type: str,
) -> Period | None:
    """Get the most recent stored period for a ranking, however old."""
    query = (
        select(BookRanking.period_start, BookRanking.period_end)
        .where(
            BookRanking.rank_type == rank_type,
            BookRanking.stat_type == stat_type,
        )
        .order_by(BookRanking.period_end.desc(), BookRanking.period_start.desc())
        .limit(1)
    )
    result = await session.exec(query)
    row = result.first()
    if row is None:
        return None
    return Period(row[0], row[1])
