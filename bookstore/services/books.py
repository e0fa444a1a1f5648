"""Book catalog operations."""
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookstore.core.exceptions import ConflictError, NotFoundError
from bookstore.core.pagination import page_offset
from bookstore.models.book import Book
from bookstore.models.status import RecordStatus
from bookstore.services.genres import get_active_genre

BOOK_EXISTS_MESSAGE = "Book with this title already exists"

# Fields a PATCH may change
UPDATABLE_FIELDS = (
    "title",
    "writer",
    "publisher",
    "publication_year",
    "description",
    "price",
    "stock_quantity",
    "genre_id",
)
NULLABLE_FIELDS = ("description",)


def _active_books():
    return (
        select(Book)
        .options(selectinload(Book.genre))
        .where(Book.status == RecordStatus.ACTIVE)
    )


async def _ensure_title_available(
    db: AsyncSession, title: str, exclude_id: str | None = None
) -> None:
    query = select(Book.id).where(Book.title == title)
    if exclude_id is not None:
        query = query.where(Book.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ConflictError(BOOK_EXISTS_MESSAGE)


async def _commit_book(db: AsyncSession, book_id: str) -> Book:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(BOOK_EXISTS_MESSAGE)
    return await get_book(db, book_id, refresh=True)


async def get_book(db: AsyncSession, book_id: str, refresh: bool = False) -> Book:
    query = _active_books().where(Book.id == book_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    book = result.scalar_one_or_none()
    if book is None:
        raise NotFoundError("Book not found")
    return book


async def create_book(db: AsyncSession, data: dict[str, Any]) -> Book:
    """
    Create a book in an active genre.

    Raises:
        NotFoundError: if the genre doesn't exist or was deleted
        ConflictError: if the title is already used
    """
    await get_active_genre(db, data["genre_id"])
    await _ensure_title_available(db, data["title"])

    book = Book(id=str(uuid.uuid4()), **data)
    db.add(book)
    return await _commit_book(db, book.id)


async def list_books(
    db: AsyncSession,
    page: int,
    limit: int,
    search: str | None = None,
    order_by_title: str = "asc",
    order_by_publish_date: str = "desc",
    genre_id: str | None = None,
) -> tuple[list[Book], int]:
    """Return one page of active books and the total match count."""
    conditions = [Book.status == RecordStatus.ACTIVE]
    if search:
        conditions.append(Book.title.icontains(search, autoescape=True))
    if genre_id is not None:
        conditions.append(Book.genre_id == genre_id)

    total = await db.scalar(select(func.count()).select_from(Book).where(*conditions))

    title_order = Book.title.desc() if order_by_title == "desc" else Book.title.asc()
    year_order = (
        Book.publication_year.asc()
        if order_by_publish_date == "asc"
        else Book.publication_year.desc()
    )
    result = await db.execute(
        select(Book)
        .options(selectinload(Book.genre))
        .where(*conditions)
        .order_by(title_order, year_order)
        .limit(limit)
        .offset(page_offset(page, limit))
    )
    return list(result.scalars().all()), total or 0


async def list_books_by_genre(
    db: AsyncSession, genre_id: str, page: int, limit: int
) -> tuple[list[Book], int]:
    await get_active_genre(db, genre_id)
    return await list_books(db, page, limit, genre_id=genre_id)


async def update_book(db: AsyncSession, book_id: str, changes: dict[str, Any]) -> Book:
    """Apply a partial update. Keys outside UPDATABLE_FIELDS are ignored."""
    book = await get_book(db, book_id)

    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    # Required columns can't be cleared
    changes = {
        k: v for k, v in changes.items() if v is not None or k in NULLABLE_FIELDS
    }

    if "genre_id" in changes and changes["genre_id"] != book.genre_id:
        await get_active_genre(db, changes["genre_id"])
    if "title" in changes and changes["title"] != book.title:
        await _ensure_title_available(db, changes["title"], exclude_id=book.id)

    for field, value in changes.items():
        setattr(book, field, value)
    return await _commit_book(db, book.id)


async def delete_book(db: AsyncSession, book_id: str) -> Book:
    book = await get_book(db, book_id)
    book.status = RecordStatus.DELETED
    book.deleted_at = datetime.now(timezone.utc)
    await db.commit()
    return book
