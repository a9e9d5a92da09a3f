from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from db.config import settings
from jobs.ranking_generation import generate_rankings
from jobs.stats_flush import flush_daily_stats


def setup_scheduler(scheduler: AsyncIOScheduler):
    """
    Set up the scheduler with the required jobs.

    Both jobs default to "yesterday" in the stats timezone, so their crontabs
    are read in that timezone too. Ranking generation is scheduled after the
    flush so it sees the freshly persisted day, but nothing enforces it.
    """
    if not settings.disable_stats_flush_scheduler:
        scheduler.add_job(
            flush_daily_stats.send,
            CronTrigger.from_crontab(
                settings.stats_flush_crontab, timezone=settings.stats_timezone
            ),
            name="stats_flush",
        )

    if not settings.disable_ranking_generation_scheduler:
        scheduler.add_job(
            generate_rankings.send,
            CronTrigger.from_crontab(
                settings.ranking_generation_crontab, timezone=settings.stats_timezone
            ),
            name="ranking_generation",
        )
