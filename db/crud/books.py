"""Read-only lookups of catalog display fields for ranked books."""

from collections.abc import Iterable

from sqlalchemy import and_, func
from sqlalchemy.orm import aliased
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from db.models import Author, Book, Category, Chapter
from db.schemas import BookDisplayInfo
from utils import const


def format_category_name(name: str | None, parent_name: str | None) -> str | None:
    """``"Parent • Child"`` for sub-categories, the plain name otherwise."""
    if name and parent_name:
        return f"{parent_name}{const.CATEGORY_NAME_SEPARATOR}{name}"
    return name


async def get_book_display_info(
    session: AsyncSession,
    book_ids: Iterable[int],
) -> dict[int, BookDisplayInfo]:
    """Get title, author, category, cover and latest chapter for each book.

    Books missing from the catalog are simply absent from the result.
    """
    book_ids = list(set(book_ids))
    if not book_ids:
        return {}

    parent_category = aliased(Category)
    latest_chapter = (
        select(
            Chapter.book_id.label("book_id"),
            func.max(Chapter.chapter_number).label("chapter_number"),
        )
        .where(Chapter.book_id.in_(book_ids))
        .group_by(Chapter.book_id)
        .subquery()
    )
    query = (
        select(
            Book,
            Author.name,
            Category.name,
            parent_category.name,
            Chapter.title,
            Chapter.published_time,
        )
        .outerjoin(Author, Author.id == Book.author_id)
        .outerjoin(Category, Category.id == Book.category_id)
        .outerjoin(parent_category, parent_category.id == Category.parent_id)
        .outerjoin(latest_chapter, latest_chapter.c.book_id == Book.id)
        .outerjoin(
            Chapter,
            and_(
                Chapter.book_id == Book.id,
                Chapter.chapter_number == latest_chapter.c.chapter_number,
            ),
        )
        .where(Book.id.in_(book_ids))
    )
    result = await session.exec(query)

    display: dict[int, BookDisplayInfo] = {}
    for book, author_name, category_name, parent_name, chapter_title, chapter_time in result.all():
        display[book.id] = BookDisplayInfo(
            title=book.title,
            description=book.description,
            author_name=author_name,
            category_name=format_category_name(category_name, parent_name),
            cover_image_url=book.cover_image_url,
            status_text=const.BOOK_STATUS_TEXT.get(book.status),
            word_count=book.word_count,
            latest_chapter_title=chapter_title,
            last_updated_time=chapter_time or book.update_time,
        )
    return display
