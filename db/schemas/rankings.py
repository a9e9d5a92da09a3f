"""Ranking schemas shared by the calculator, the query service and the API."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class ScoredBook(BaseModel):
    """A computed ranking position before it is stored."""

    rank: int
    book_id: int
    score: float


class BookDisplayInfo(BaseModel):
    """Denormalised catalog fields shown next to a ranked book."""

    title: str | None = None
    description: str | None = None
    author_name: str | None = None
    category_name: str | None = None
    cover_image_url: str | None = None
    status_text: str | None = None
    word_count: int | None = None
    latest_chapter_title: str | None = None
    last_updated_time: datetime | None = None


class RankingItem(BookDisplayInfo):
    rank: int
    book_id: int
    score: float


class RankingResponse(BaseModel):
    rank_type: str
    stat_type: str
    period_start: date | None = None
    period_end: date | None = None
    rankings: list[RankingItem] = Field(default_factory=list)
