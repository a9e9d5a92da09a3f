"""
Book engagement events and the buffered counters of today.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_stats_buffer
from api.services import StatsBufferService
from db.enums import StatType
from db.schemas import (
    BookDayStatsResponse,
    BookIdsResponse,
    DayStatsResponse,
    IncrementResponse,
)
from utils import const
from utils.periods import today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/book-stats", tags=["Book Stats"])


async def _increment(
    buffer: StatsBufferService, book_id: int, stat_type: StatType, count: int
) -> IncrementResponse:
    value = await buffer.increment(book_id, stat_type, count)
    return IncrementResponse(book_id=book_id, stat_type=stat_type, delta=count, value=value)


# ============================================
# Events
# ============================================


@router.post("/{book_id}/read", response_model=IncrementResponse)
async def record_read(
    book_id: int = Path(gt=0),
    count: int = Query(1, ge=1),
    buffer: StatsBufferService = Depends(get_stats_buffer),
):
    return await _increment(buffer, book_id, StatType.READ_COUNT, count)


@router.post("/{book_id}/recommend", response_model=IncrementResponse)
async def record_recommend_vote(
    book_id: int = Path(gt=0),
    count: int = Query(1, ge=1),
    buffer: StatsBufferService = Depends(get_stats_buffer),
):
    return await _increment(buffer, book_id, StatType.RECOMMEND_VOTES, count)


@router.post("/{book_id}/monthly-ticket", response_model=IncrementResponse)
async def record_monthly_ticket(
    book_id: int = Path(gt=0),
    count: int = Query(1, ge=1),
    buffer: StatsBufferService = Depends(get_stats_buffer),
):
    return await _increment(buffer, book_id, StatType.MONTHLY_TICKETS, count)


@router.post("/{book_id}/collection", response_model=IncrementResponse)
async def record_collection_change(
    book_id: int = Path(gt=0),
    count: int = Query(1, description="Negative when the book is removed from a shelf"),
    buffer: StatsBufferService = Depends(get_stats_buffer),
):
    if count == 0:
        raise HTTPException(status_code=400, detail="count must not be zero")
    return await _increment(buffer, book_id, StatType.COLLECTION_COUNT, count)


# ============================================
# Reads
# ============================================


@router.get("/today", response_model=DayStatsResponse)
async def get_all_today_stats(buffer: StatsBufferService = Depends(get_stats_buffer)):
    stat_date = today()
    books = await buffer.get_all_books_stats_for_date(stat_date)
    return DayStatsResponse(stat_date=stat_date, books=books, count=len(books))


@router.get("/books", response_model=BookIdsResponse)
async def get_active_books(buffer: StatsBufferService = Depends(get_stats_buffer)):
    stat_date = today()
    book_ids = await buffer.get_active_book_ids(stat_date)
    return BookIdsResponse(stat_date=stat_date, book_ids=book_ids, count=len(book_ids))


@router.get("/health")
async def get_buffer_health(buffer: StatsBufferService = Depends(get_stats_buffer)):
    status = await buffer.health_check()
    healthy = status["status"] == "healthy" and status["read_test"]
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=status,
        headers=const.NO_CACHE_HEADERS,
    )


@router.get("/{book_id}/today", response_model=BookDayStatsResponse)
async def get_book_today_stats(
    book_id: int = Path(gt=0),
    buffer: StatsBufferService = Depends(get_stats_buffer),
):
    stats = await buffer.get_today_stats(book_id)
    return BookDayStatsResponse(book_id=book_id, stat_date=today(), stats=stats)
