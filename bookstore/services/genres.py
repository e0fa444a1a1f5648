"""Genre catalog operations."""
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.exceptions import ConflictError, NotFoundError
from bookstore.core.pagination import page_offset
from bookstore.models.book import Book
from bookstore.models.genre import Genre
from bookstore.models.status import RecordStatus

GENRE_EXISTS_MESSAGE = "Genre name already exists"


async def _find_by_name(
    db: AsyncSession, name: str, exclude_id: str | None = None
) -> Genre | None:
    # Names stay reserved after a soft delete, matching the unique index
    query = select(Genre).where(func.lower(Genre.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Genre.id != exclude_id)
    result = await db.execute(query)
    return result.scalars().first()


async def get_active_genre(db: AsyncSession, genre_id: str) -> Genre:
    result = await db.execute(
        select(Genre).where(Genre.id == genre_id, Genre.status == RecordStatus.ACTIVE)
    )
    genre = result.scalar_one_or_none()
    if genre is None:
        raise NotFoundError("Genre not found")
    return genre


async def create_genre(db: AsyncSession, name: str) -> Genre:
    if await _find_by_name(db, name) is not None:
        raise ConflictError(GENRE_EXISTS_MESSAGE)

    genre = Genre(name=name)
    db.add(genre)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(GENRE_EXISTS_MESSAGE)
    await db.refresh(genre)
    return genre


async def list_genres(
    db: AsyncSession,
    page: int,
    limit: int,
    search: str | None = None,
    order_by_name: str = "asc",
) -> tuple[list[Genre], int]:
    """Return one page of active genres and the total match count."""
    conditions = [Genre.status == RecordStatus.ACTIVE]
    if search:
        conditions.append(Genre.name.icontains(search, autoescape=True))

    total = await db.scalar(select(func.count()).select_from(Genre).where(*conditions))

    order = Genre.name.desc() if order_by_name == "desc" else Genre.name.asc()
    result = await db.execute(
        select(Genre)
        .where(*conditions)
        .order_by(order)
        .limit(limit)
        .offset(page_offset(page, limit))
    )
    return list(result.scalars().all()), total or 0


async def update_genre(db: AsyncSession, genre_id: str, name: str) -> Genre:
    genre = await get_active_genre(db, genre_id)
    if await _find_by_name(db, name, exclude_id=genre.id) is not None:
        raise ConflictError(GENRE_EXISTS_MESSAGE)

    genre.name = name
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(GENRE_EXISTS_MESSAGE)
    await db.refresh(genre)
    return genre


async def delete_genre(db: AsyncSession, genre_id: str) -> Genre:
    """
    Soft-delete a genre.

    Raises:
        NotFoundError: if no active genre has this id
        ConflictError: if active books still reference the genre
    """
    genre = await get_active_genre(db, genre_id)

    book_count = await db.scalar(
        select(func.count())
        .select_from(Book)
        .where(Book.genre_id == genre.id, Book.status == RecordStatus.ACTIVE)
    )
    if book_count:
        raise ConflictError(
            "Cannot delete genre while it is still associated with books"
        )

    genre.status = RecordStatus.DELETED
    genre.deleted_at = datetime.now(timezone.utc)
    await db.commit()
    return genre
