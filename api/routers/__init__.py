"""API routers package.

- stats: engagement events and today's buffered counters
- rankings: stored daily, weekly, monthly and peak rankings
- admin: manual triggers for the scheduled jobs

Import the router via get_router() to avoid circular imports.
"""

from fastapi import APIRouter

_router = None


def get_router() -> APIRouter:
    """Create and return the combined API router.

    Uses lazy imports to avoid circular dependencies.
    """
    global _router
    if _router is not None:
        return _router

    from api.routers.admin import router as admin_router
    from api.routers.rankings import router as rankings_router
    from api.routers.stats import router as stats_router

    combined = APIRouter()
    combined.include_router(stats_router)
    combined.include_router(rankings_router)
    combined.include_router(admin_router)
    _router = combined
    return _router


__all__ = ["get_router"]
