"""
Database schemas package.

This module re-exports all Pydantic schemas for easy importing:
    from db.schemas import DailyCounters, RankingResponse, ...
"""

# Ranking schemas
from db.schemas.rankings import (
    BookDisplayInfo,
    RankingItem,
    RankingResponse,
    ScoredBook,
)

# Stats buffer schemas
from db.schemas.stats import (
    BookDayStatsResponse,
    BookIdsResponse,
    BufferedRecord,
    DailyCounters,
    DayStatsResponse,
    IncrementResponse,
)

__all__ = [
    "BookDisplayInfo",
    "BookDayStatsResponse",
    "BookIdsResponse",
    "BufferedRecord",
    "DailyCounters",
    "DayStatsResponse",
    "IncrementResponse",
    "RankingItem",
    "RankingResponse",
    "ScoredBook",
]
