"""
FastAPI Dependencies for API endpoints.

Services are built per request so tests can override them with
``app.dependency_overrides``.
"""

from fastapi import Depends, HTTPException, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from api.services import RankingQueryService, StatsBufferService
from db.config import settings
from db.database import get_read_session


def get_stats_buffer() -> StatsBufferService:
    return StatsBufferService()


async def get_ranking_query_service(
    session: AsyncSession = Depends(get_read_session),
) -> RankingQueryService:
    return RankingQueryService(session)


def verify_api_key(request: Request) -> None:
    """Validate the X-API-Key header when an API password is configured.

    Without ``api_password`` this is a no-op.
    """
    if not settings.api_password:
        return

    api_key = request.headers.get("X-API-Key")
    if not api_key or api_key != settings.api_password:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
