"""
Database models package.

This module re-exports all models for easy importing:
    from db.models import BookDailyStats, BookStats, BookRanking, ...
"""

# Base and mixins
from db.models.base import TimestampMixin

# Read-only catalog mappings
from db.models.catalog import Author, Book, Category, Chapter

# Ranking snapshots
from db.models.rankings import BookRanking

# Daily and cumulative statistics
from db.models.stats import BookDailyStats, BookStats

# Tables created and written by this service
OWNED_TABLES = [
    BookDailyStats.__table__,
    BookStats.__table__,
    BookRanking.__table__,
]

__all__ = [
    "OWNED_TABLES",
    "Author",
    "Book",
    "BookDailyStats",
    "BookRanking",
    "BookStats",
    "Category",
    "Chapter",
    "TimestampMixin",
]
