"""
Manual triggers for the scheduled jobs.
"""

import asyncio
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from api.dependencies import verify_api_key
from jobs.ranking_generation import generate_rankings
from jobs.stats_flush import flush_daily_stats

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin - Jobs"],
    dependencies=[Depends(verify_api_key)],
)


class ManualRunResponse(BaseModel):
    """Response for manual job run"""

    success: bool
    message: str
    job_id: str


async def _enqueue(job_id: str, actor, **kwargs) -> ManualRunResponse:
    # actor.send talks to Redis synchronously
    try:
        await asyncio.to_thread(actor.send, **kwargs)
    except Exception as e:
        logger.error(f"Failed to trigger job {job_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to trigger job: {str(e)}",
        )

    logger.info(f"Manual run triggered for job: {job_id} {kwargs}")
    return ManualRunResponse(
        success=True,
        message=f"Job '{job_id}' has been queued for execution",
        job_id=job_id,
    )


@router.post("/jobs/stats-flush", response_model=ManualRunResponse)
async def run_stats_flush(
    target_date: date | None = Query(None, description="Day to flush, yesterday by default"),
):
    kwargs = {"target_date": target_date.isoformat()} if target_date else {}
    return await _enqueue("stats_flush", flush_daily_stats, **kwargs)


@router.post("/jobs/ranking-generation", response_model=ManualRunResponse)
async def run_ranking_generation(
    today: date | None = Query(
        None, description="Generate the rankings due on this day, the current day by default"
    ),
):
    kwargs = {"today": today.isoformat()} if today else {}
    return await _enqueue("ranking_generation", generate_rankings, **kwargs)
