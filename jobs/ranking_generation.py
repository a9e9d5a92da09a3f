"""Daily generation of the ranking snapshots.

Runs after the stats flush and, relative to ``today``:

- daily rankings for yesterday, for every stat type,
- weekly rankings for the week ending yesterday when today is a Monday,
- monthly rankings for yesterday's month when today is the 1st,
- peak rankings for all, male and female books, stored under yesterday.

Each (rank type, stat type) unit runs on its own; a failing unit is logged
and the others still run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import NamedTuple

import dramatiq
from sqlmodel.ext.asyncio.session import AsyncSession

from api.services.ranking_calculator import RankingCalculator
from db.config import settings
from db.database import get_background_session
from db.enums import PeakSegment, RankType, StatType
from utils import periods
from utils.periods import Period

logger = logging.getLogger(__name__)


class GenerationUnit(NamedTuple):
    rank_type: RankType
    stat_type: StatType | PeakSegment
    period: Period

    @property
    def name(self) -> str:
        return f"{self.rank_type.value}/{self.stat_type.value}"


@dataclass
class GenerationResult:
    today: date
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def plan_units(today: date) -> list[GenerationUnit]:
    """Rankings due on ``today``."""
    yesterday = periods.yesterday(today)
    units = []
    for stat_type in StatType:
        units.append(GenerationUnit(RankType.DAILY, stat_type, periods.single_day(yesterday)))
        if periods.is_week_start(today):
            units.append(GenerationUnit(RankType.WEEKLY, stat_type, periods.week_ending(yesterday)))
        if periods.is_month_start(today):
            units.append(
                GenerationUnit(RankType.MONTHLY, stat_type, periods.month_to_date(yesterday))
            )
    for segment in PeakSegment:
        units.append(GenerationUnit(RankType.PEAK, segment, periods.single_day(yesterday)))
    return units


class RankingGenerator:
    def __init__(self, session: AsyncSession, calculator: RankingCalculator | None = None):
        self.session = session
        self.calculator = calculator or RankingCalculator(session)

    async def _run_unit(self, unit: GenerationUnit) -> int:
        if unit.rank_type == RankType.PEAK:
            return await self.calculator.generate_peak(
                unit.stat_type,
                unit.period.start,
                unit.period.end,
                settings.peak_ranking_generation_limit,
            )
        return await self.calculator.generate(
            unit.rank_type,
            unit.stat_type,
            unit.period.start,
            unit.period.end,
            settings.ranking_generation_limit,
        )

    async def run(self, today: date | None = None) -> GenerationResult:
        today = today or periods.today()
        result = GenerationResult(today=today)
        for unit in plan_units(today):
            try:
                saved = await self._run_unit(unit)
            except Exception as e:
                await self.session.rollback()
                logger.exception(
                    f"Failed to generate {unit.name} ranking for "
                    f"{unit.period.start}..{unit.period.end}: {e}"
                )
                result.failed.append(unit.name)
                continue
            logger.info(f"Generated {unit.name} ranking with {saved} entries")
            result.succeeded.append(unit.name)

        logger.info(
            f"Ranking generation for {today} finished: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed"
        )
        return result


@dramatiq.actor(
    time_limit=settings.worker_time_limit_minutes * 60 * 1000,
    max_retries=settings.worker_max_retries,
    priority=20,
)
async def generate_rankings(today: str | None = None, **kwargs):
    """Generate the rankings due today, or as if run on ``today`` (YYYY-MM-DD)."""
    day = date.fromisoformat(today) if today else None
    async with get_background_session() as session:
        await RankingGenerator(session).run(day)
