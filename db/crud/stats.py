"""
Daily and cumulative book statistics CRUD operations.

Writers here never commit; the caller owns the transaction boundaries so
the flush job can decide what is rolled back together.
"""

import logging
from collections.abc import Sequence
from datetime import date

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from db.crud.base import upsert_insert
from db.models import BookDailyStats, BookStats
from db.models.base import utc_now
from db.schemas import BufferedRecord, DailyCounters
from utils import chunked

logger = logging.getLogger(__name__)


# =============================================================================
# DAILY STATS
# =============================================================================


async def upsert_daily_stats(
    session: AsyncSession,
    records: Sequence[BufferedRecord],
    *,
    batch_size: int = 1000,
) -> int:
    """Insert or overwrite daily rows keyed by (book_id, stat_date).

    Counters are replaced with the snapshot values, never added, so a retried
    flush over the same buffered keys writes identical rows.
    """
    now = utc_now()
    rows = [
        {
            "book_id": record.book_id,
            "stat_date": record.stat_date,
            **record.counters.model_dump(),
            "created_at": now,
            "updated_at": now,
        }
        for record in records
    ]

    for chunk in chunked(rows, batch_size):
        stmt = upsert_insert(session, BookDailyStats).values(chunk)
        stmt = stmt.on_conflict_do_update(
            index_elements=["book_id", "stat_date"],
            set_={
                "read_count": stmt.excluded.read_count,
                "recommend_votes": stmt.excluded.recommend_votes,
                "monthly_tickets": stmt.excluded.monthly_tickets,
                "collection_count": stmt.excluded.collection_count,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await session.execute(stmt)

    logger.debug(f"Upserted {len(rows)} daily stats rows")
    return len(rows)


async def get_daily_stats(
    session: AsyncSession,
    book_id: int,
    stat_date: date,
) -> BookDailyStats | None:
    """Get one book's persisted stats for a day."""
    query = select(BookDailyStats).where(
        BookDailyStats.book_id == book_id,
        BookDailyStats.stat_date == stat_date,
    )
    result = await session.exec(query)
    return result.first()


async def get_daily_stats_in_range(
    session: AsyncSession,
    start_date: date,
    end_date: date,
    *,
    book_id: int | None = None,
) -> Sequence[BookDailyStats]:
    """Get persisted daily rows in the closed range, optionally for one book."""
    query = select(BookDailyStats).where(
        BookDailyStats.stat_date >= start_date,
        BookDailyStats.stat_date <= end_date,
    )
    if book_id is not None:
        query = query.where(BookDailyStats.book_id == book_id)
    query = query.order_by(BookDailyStats.stat_date, BookDailyStats.book_id)
    result = await session.exec(query)
    return result.all()


# =============================================================================
# CUMULATIVE STATS
# =============================================================================


async def apply_cumulative_delta(
    session: AsyncSession,
    book_id: int,
    counters: DailyCounters,
) -> None:
    """Add one day's counters to the book's running totals, creating the row if needed."""
    now = utc_now()
    stmt = upsert_insert(session, BookStats).values(
        book_id=book_id,
        view_count=counters.read_count,
        recommend_count=counters.recommend_votes,
        monthly_ticket_count=counters.monthly_tickets,
        collection_count=counters.collection_count,
        last_updated_time=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["book_id"],
        set_={
            "view_count": BookStats.view_count + stmt.excluded.view_count,
            "recommend_count": BookStats.recommend_count + stmt.excluded.recommend_count,
            "monthly_ticket_count": BookStats.monthly_ticket_count
            + stmt.excluded.monthly_ticket_count,
            "collection_count": BookStats.collection_count + stmt.excluded.collection_count,
            "last_updated_time": stmt.excluded.last_updated_time,
        },
    )
    await session.execute(stmt)


async def get_book_stats(session: AsyncSession, book_id: int) -> BookStats | None:
    """Get a book's cumulative stats."""
    result = await session.exec(select(BookStats).where(BookStats.book_id == book_id))
    return result.first()
