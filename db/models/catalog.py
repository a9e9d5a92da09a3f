"""Read-only mappings of the catalog tables.

The catalog service owns these tables; rankings only read display fields
(title, author, category, cover, latest chapter) and the category channel
used to segment the peak ranking.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index
from sqlmodel import Field, SQLModel


class Author(SQLModel, table=True):
    __tablename__ = "authors"

    id: int = Field(default=None, primary_key=True)
    name: str
    avatar_url: str | None = Field(default=None)


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: int = Field(default=None, primary_key=True)
    name: str
    parent_id: int | None = Field(default=None, foreign_key="categories.id")
    channel: int | None = Field(default=None, index=True)  # 1 = male, 0 = female


class Book(SQLModel, table=True):
    __tablename__ = "books"

    id: int = Field(default=None, primary_key=True)
    title: str
    author_id: int | None = Field(default=None, foreign_key="authors.id", index=True)
    category_id: int | None = Field(default=None, foreign_key="categories.id", index=True)
    description: str | None = Field(default=None)
    cover_image_url: str | None = Field(default=None)
    status: int = Field(default=1)  # 1 = ongoing, 0 = completed
    word_count: int = Field(default=0)
    update_time: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))


class Chapter(SQLModel, table=True):
    __tablename__ = "chapters"
    __table_args__ = (Index("idx_chapter_book_number", "book_id", "chapter_number"),)

    id: int = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key="books.id")
    chapter_number: int
    title: str
    published_time: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
