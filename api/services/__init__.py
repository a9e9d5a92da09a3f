"""
Services layer for business logic.

This package contains service classes that encapsulate business logic,
separating it from API routes and CRUD operations.

Services:
- BaseService: Base class for all services
- StatsBufferService: Buffered per-day counters in Redis
- RankingCalculator: Ranking computation and snapshot replacement
- RankingQueryService: Serving stored rankings with display fields
"""

from .base import BaseService
from .ranking_calculator import RankingCalculator
from .ranking_query import RankingQueryService
from .stats_buffer import StatsBufferService, parse_stats_key, stats_key

__all__ = [
    "BaseService",
    "RankingCalculator",
    "RankingQueryService",
    "StatsBufferService",
    "parse_stats_key",
    "stats_key",
]
