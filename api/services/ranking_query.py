"""Serves stored ranking snapshots enriched with catalog display fields."""

import logging
from datetime import date

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlmodel.ext.asyncio.session import AsyncSession

from db import crud
from db.config import settings
from db.enums import PeakSegment, RankType, StatType
from db.exceptions import StoreUnavailable
from db.schemas import BookDisplayInfo, RankingItem, RankingResponse
from utils import periods
from utils.periods import Period

from .base import BaseService


def resolve_limit(limit: int | None, rank_type: RankType) -> int:
    """Missing or non-positive limits fall back to the default; all are capped."""
    if limit is None or limit <= 0:
        if rank_type == RankType.PEAK:
            limit = settings.peak_query_default_limit
        else:
            limit = settings.ranking_query_default_limit
    return min(limit, settings.ranking_query_max_limit)


def resolve_period(rank_type: RankType, day: date | None = None) -> Period:
    """Period of a daily, weekly or monthly ranking for an optional end date.

    Without a date the most recent completed day, ISO week or month is used.
    """
    if rank_type == RankType.DAILY:
        return periods.single_day(day or periods.yesterday())
    if rank_type == RankType.WEEKLY:
        return periods.week_ending(day) if day else periods.last_completed_week()
    if rank_type == RankType.MONTHLY:
        return periods.month_to_date(day) if day else periods.last_completed_month()
    raise ValueError(f"Rank type {rank_type} has no calendar period")


class RankingQueryService(BaseService):
    def __init__(self, session: AsyncSession, logger: logging.Logger | None = None):
        super().__init__(session=session, logger=logger)

    async def get_ranking(
        self,
        rank_type: RankType,
        stat_type: str,
        day: date | None = None,
        limit: int | None = None,
    ) -> RankingResponse:
        """Get a stored ranking, or an empty one if it was never generated.

        For peak rankings ``stat_type`` is the segment and ``day`` is ignored:
        the latest stored peak period is served.
        """
        limit = resolve_limit(limit, rank_type)
        try:
            if rank_type == RankType.PEAK:
                period = await crud.find_latest_ranking_period(
                    self.session, rank_type.value, stat_type
                )
                if period is None:
                    return RankingResponse(rank_type=rank_type.value, stat_type=stat_type)
            else:
                period = resolve_period(rank_type, day)

            rows = await crud.get_saved_ranking(
                self.session, rank_type.value, stat_type, period.start, period.end, limit=limit
            )
            display = await crud.get_book_display_info(self.session, [row.book_id for row in rows])
        except (OperationalError, InterfaceError) as e:
            raise StoreUnavailable("database", str(e)) from e

        empty = BookDisplayInfo()
        rankings = [
            RankingItem(
                rank=row.rank_position,
                book_id=row.book_id,
                score=row.score,
                **display.get(row.book_id, empty).model_dump(),
            )
            for row in rows
        ]
        self.logger.debug(
            f"Serving {rank_type.value}/{stat_type} ranking for {period.start}..{period.end}: "
            f"{len(rankings)} entries"
        )
        return RankingResponse(
            rank_type=rank_type.value,
            stat_type=stat_type,
            period_start=period.start,
            period_end=period.end,
            rankings=rankings,
        )

    async def get_daily_ranking(
        self, stat_type: StatType, day: date | None = None, limit: int | None = None
    ) -> RankingResponse:
        return await self.get_ranking(RankType.DAILY, stat_type.value, day, limit)

    async def get_weekly_ranking(
        self, stat_type: StatType, day: date | None = None, limit: int | None = None
    ) -> RankingResponse:
        return await self.get_ranking(RankType.WEEKLY, stat_type.value, day, limit)

    async def get_monthly_ranking(
        self, stat_type: StatType, day: date | None = None, limit: int | None = None
    ) -> RankingResponse:
        return await self.get_ranking(RankType.MONTHLY, stat_type.value, day, limit)

    async def get_peak_ranking(
        self, segment: PeakSegment = PeakSegment.ALL, limit: int | None = None
    ) -> RankingResponse:
        return await self.get_ranking(RankType.PEAK, segment.value, limit=limit)
