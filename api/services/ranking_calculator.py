"""Computes ranking snapshots and replaces them in ``book_rankings``."""

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from db import crud
from db.enums import PEAK_SEGMENT_CHANNELS, PeakSegment, RankType, StatType
from db.exceptions import RankingComputeFailure, RankingPersistFailure
from db.schemas import ScoredBook
from utils.peak_scoring import DEFAULT_PEAK_SCORER, PeakScorer

from .base import BaseService


class RankingCalculator(BaseService):
    """Ranks books over stored stats and persists the result atomically.

    Every computed list is ordered by score descending with ties broken by
    book_id ascending, and ranks run from 1 without gaps.
    """

    def __init__(self, session: AsyncSession, logger: logging.Logger | None = None):
        super().__init__(session=session, logger=logger)

    async def compute_ranking(
        self,
        stat_type: StatType,
        period_start: date,
        period_end: date,
        limit: int,
    ) -> list[ScoredBook]:
        """Top ``limit`` books by the summed daily counter over the closed period."""
        try:
            return await crud.calculate_counter_ranking(
                self.session, stat_type, period_start, period_end, limit
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise RankingComputeFailure(
                f"Failed to compute {stat_type.value} ranking for {period_start}..{period_end}: {e}"
            ) from e

    async def compute_peak_ranking(
        self,
        segment: PeakSegment,
        limit: int,
        scorer: PeakScorer | None = None,
    ) -> list[ScoredBook]:
        """Top ``limit`` books of a channel segment by cumulative peak score."""
        scorer = scorer or DEFAULT_PEAK_SCORER
        channel = PEAK_SEGMENT_CHANNELS[segment]
        try:
            return await crud.calculate_peak_ranking(
                self.session,
                scorer(),
                limit,
                channel=int(channel) if channel is not None else None,
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise RankingComputeFailure(
                f"Failed to compute peak ranking for segment {segment.value}: {e}"
            ) from e

    async def persist_ranking(
        self,
        rank_type: RankType,
        stat_type: str,
        period_start: date,
        period_end: date,
        items: Sequence[ScoredBook],
    ) -> int:
        """Replace the stored snapshot for this exact key with ``items``.

        Delete and insert share one transaction; an empty ``items`` clears
        the period.
        """
        try:
            removed = await crud.delete_ranking_by_period(
                self.session, rank_type.value, stat_type, period_start, period_end
            )
            saved = await crud.insert_book_rankings(
                self.session, rank_type.value, stat_type, period_start, period_end, items
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise RankingPersistFailure(
                f"Failed to save {rank_type.value}/{stat_type} ranking for "
                f"{period_start}..{period_end}: {e}"
            ) from e

        self.logger.info(
            f"Saved {rank_type.value}/{stat_type} ranking for {period_start}..{period_end}: "
            f"{saved} entries (replaced {removed})"
        )
        return saved

    async def generate(
        self,
        rank_type: RankType,
        stat_type: StatType,
        period_start: date,
        period_end: date,
        limit: int,
    ) -> int:
        items = await self.compute_ranking(stat_type, period_start, period_end, limit)
        return await self.persist_ranking(rank_type, stat_type.value, period_start, period_end, items)

    async def generate_peak(
        self,
        segment: PeakSegment,
        period_start: date,
        period_end: date,
        limit: int,
        scorer: PeakScorer | None = None,
    ) -> int:
        items = await self.compute_peak_ranking(segment, limit, scorer)
        return await self.persist_ranking(
            RankType.PEAK, segment.value, period_start, period_end, items
        )
