"""Daily flush of the Redis counter buffer into PostgreSQL.

A run for day D:

1. scans every ``{prefix}:D:*`` key and reads its hash,
2. upserts one ``book_daily_stats`` row per book in a single transaction,
3. adds each row's counters to ``book_stats``, one transaction per book,
4. deletes the keys that were persisted.

Keys are only deleted after step 2 committed, so a crash anywhere before
that leaves the buffer intact for the next run; the overwrite upsert makes
that rerun write identical daily rows.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

import dramatiq
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from api.services.stats_buffer import StatsBufferService
from db.config import settings
from db.crud import stats as stats_crud
from db.database import get_background_session
from db.exceptions import PersistFailure, ScanFailure, StoreUnavailable
from utils import periods

logger = logging.getLogger(__name__)


@dataclass
class FlushResult:
    target_date: date
    scanned: int = 0
    malformed: int = 0
    empty: int = 0
    persisted: int = 0
    cumulative_failures: list[int] = field(default_factory=list)
    deleted: int = 0
    delete_error: str | None = None


class StatsFlusher:
    def __init__(self, session: AsyncSession, buffer: StatsBufferService | None = None):
        self.session = session
        self.buffer = buffer or StatsBufferService()

    async def run(self, target_date: date | None = None) -> FlushResult:
        """Flush one day of buffered counters, yesterday by default.

        Raises:
            ScanFailure: the buffer could not be read; nothing was written.
            PersistFailure: the daily upsert was rolled back; nothing was deleted.
        """
        target_date = target_date or periods.yesterday()
        logger.info(f"Flushing buffered stats for {target_date}")

        try:
            snapshot = await self.buffer.read_records_for_date(target_date)
        except StoreUnavailable as e:
            raise ScanFailure(f"Failed to read buffered stats for {target_date}: {e}") from e

        result = FlushResult(
            target_date=target_date,
            scanned=snapshot.scanned,
            malformed=len(snapshot.malformed_keys),
            empty=len(snapshot.empty_keys),
        )
        records = snapshot.records
        if not records:
            logger.info(f"No buffered stats to flush for {target_date}")
            return result

        try:
            result.persisted = await stats_crud.upsert_daily_stats(
                self.session, records, batch_size=settings.stats_flush_batch_size
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistFailure(
                f"Failed to persist {len(records)} daily stats rows for {target_date}: {e}"
            ) from e

        # Daily rows are committed; a failed running total only affects its own book.
        for record in records:
            try:
                await stats_crud.apply_cumulative_delta(
                    self.session, record.book_id, record.counters
                )
                await self.session.commit()
            except Exception as e:
                await self.session.rollback()
                logger.error(f"Failed to update cumulative stats of book {record.book_id}: {e}")
                result.cumulative_failures.append(record.book_id)

        try:
            result.deleted = await self.buffer.delete_keys([record.key for record in records])
        except StoreUnavailable as e:
            # The data is durable; leftover keys expire through their TTL.
            logger.error(f"Failed to delete flushed stats keys for {target_date}: {e}")
            result.delete_error = str(e)

        logger.info(
            f"Flushed stats for {target_date}: persisted={result.persisted} "
            f"deleted={result.deleted} malformed={result.malformed} empty={result.empty} "
            f"cumulative_failures={len(result.cumulative_failures)}"
        )
        return result


@dramatiq.actor(
    time_limit=settings.worker_time_limit_minutes * 60 * 1000,
    max_retries=settings.worker_max_retries,
    priority=10,
)
async def flush_daily_stats(target_date: str | None = None, **kwargs):
    """Flush yesterday's buffer, or ``target_date`` (YYYY-MM-DD) when given."""
    day = date.fromisoformat(target_date) if target_date else None
    async with get_background_session() as session:
        try:
            await StatsFlusher(session).run(day)
        except (ScanFailure, PersistFailure) as e:
            # Keys stay buffered; tomorrow's run or a manual run picks them up.
            logger.error(f"Stats flush aborted: {e}")
