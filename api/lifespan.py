"""Application lifecycle management."""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from api.scheduler import setup_scheduler
from db import database
from db.config import settings
from db.redis_database import REDIS_ASYNC_CLIENT


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application lifespan context manager.

    Handles:
    - Database initialization
    - Scheduler setup
    - Graceful shutdown
    """
    # Startup logic
    await database.init()

    scheduler = None
    if not settings.disable_all_scheduler:
        scheduler = AsyncIOScheduler(timezone=settings.stats_timezone)
        setup_scheduler(scheduler)
        scheduler.start()

    yield

    # Shutdown logic
    if scheduler:
        try:
            scheduler.shutdown(wait=False)
        except Exception as e:
            logging.exception("Error shutting down scheduler, %s", e)

    await REDIS_ASYNC_CLIENT.aclose()
    await database.close()
