"""
Read-only ranking endpoints backed by the stored snapshots.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import get_ranking_query_service
from api.services import RankingQueryService
from db.enums import PeakSegment, StatType
from db.schemas import RankingResponse
from utils import const

router = APIRouter(prefix="/api/v1/rankings", tags=["Rankings"])


@router.get("/daily", response_model=RankingResponse)
async def get_daily_ranking(
    response: Response,
    stat_type: StatType = Query(StatType.READ_COUNT),
    day: date | None = Query(None, alias="date", description="Ranked day, yesterday by default"),
    limit: int | None = Query(None),
    service: RankingQueryService = Depends(get_ranking_query_service),
):
    response.headers.update(const.RANKING_CACHE_HEADERS)
    return await service.get_daily_ranking(stat_type, day, limit)


@router.get("/weekly", response_model=RankingResponse)
async def get_weekly_ranking(
    response: Response,
    stat_type: StatType = Query(StatType.READ_COUNT),
    day: date | None = Query(
        None, alias="date", description="Last day of the week, the last completed week by default"
    ),
    limit: int | None = Query(None),
    service: RankingQueryService = Depends(get_ranking_query_service),
):
    response.headers.update(const.RANKING_CACHE_HEADERS)
    return await service.get_weekly_ranking(stat_type, day, limit)


@router.get("/monthly", response_model=RankingResponse)
async def get_monthly_ranking(
    response: Response,
    stat_type: StatType = Query(StatType.READ_COUNT),
    day: date | None = Query(
        None, alias="date", description="Last day of the month range, the last completed month by default"
    ),
    limit: int | None = Query(None),
    service: RankingQueryService = Depends(get_ranking_query_service),
):
    response.headers.update(const.RANKING_CACHE_HEADERS)
    return await service.get_monthly_ranking(stat_type, day, limit)


@router.get("/peak", response_model=RankingResponse)
async def get_peak_ranking(
    response: Response,
    segment: PeakSegment = Query(PeakSegment.ALL),
    limit: int | None = Query(None),
    service: RankingQueryService = Depends(get_ranking_query_service),
):
    response.headers.update(const.RANKING_CACHE_HEADERS)
    return await service.get_peak_ranking(segment, limit)
