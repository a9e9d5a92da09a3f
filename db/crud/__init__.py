"""
Database CRUD operations package.

This module provides organized access to CRUD operations by domain.

Usage:
    from db import crud
    await crud.upsert_daily_stats(session, records)
    rows = await crud.get_saved_ranking(session, "daily", "read_count", start, end)
"""

# Catalog display lookups (read-only)
from db.crud.books import format_category_name, get_book_display_info

# Ranking calculation and snapshots
from db.crud.rankings import (
    calculate_counter_ranking,
    calculate_peak_ranking,
    delete_ranking_by_period,
    find_latest_ranking_period,
    get_saved_ranking,
    insert_book_rankings,
)

# Daily and cumulative stats
from db.crud.stats import (
    apply_cumulative_delta,
    get_book_stats,
    get_daily_stats,
    get_daily_stats_in_range,
    upsert_daily_stats,
)

__all__ = [
    "apply_cumulative_delta",
    "calculate_counter_ranking",
    "calculate_peak_ranking",
    "delete_ranking_by_period",
    "find_latest_ranking_period",
    "format_category_name",
    "get_book_display_info",
    "get_book_stats",
    "get_daily_stats",
    "get_daily_stats_in_range",
    "get_saved_ranking",
    "insert_book_rankings",
    "upsert_daily_stats",
]
