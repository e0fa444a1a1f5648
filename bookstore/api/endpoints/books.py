from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.config import settings
from bookstore.core.dependencies import get_current_user
from bookstore.core.pagination import build_pagination_meta
from bookstore.database import get_db
from bookstore.models.user import User
from bookstore.schemas.book import BookCreate, BookResponse, BookUpdate
from bookstore.schemas.common import ApiResponse
from bookstore.services import books

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[BookResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_book(
    book_data: BookCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Add a book to the catalog.

    - **genreId**: must reference an active genre
    - **title**: must not be used by another book
    """
    book = await books.create_book(db, book_data.model_dump())
    return ApiResponse(
        message="Book added successfully",
        data=BookResponse.model_validate(book),
    )


@router.get("", response_model=ApiResponse[list[BookResponse]])
async def list_books(
    page: int = Query(1, ge=1, description="Page number (starts at 1)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: str | None = Query(None, description="Case-insensitive title filter"),
    order_by_title: Literal["asc", "desc"] = Query("asc", alias="orderByTitle"),
    order_by_publish_date: Literal["asc", "desc"] = Query(
        "desc", alias="orderByPublishDate"
    ),
    db: AsyncSession = Depends(get_db),
):
    """List active books ordered by title, then publication year."""
    items, total = await books.list_books(
        db, page, limit, search, order_by_title, order_by_publish_date
    )
    return ApiResponse(
        message="Get all books successfully",
        data=[BookResponse.model_validate(book) for book in items],
        meta=build_pagination_meta(page, limit, total),
    )


@router.get("/genre/{genre_id}", response_model=ApiResponse[list[BookResponse]])
async def list_books_by_genre(
    genre_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    items, total = await books.list_books_by_genre(db, str(genre_id), page, limit)
    return ApiResponse(
        message="Get books by genre successfully",
        data=[BookResponse.model_validate(book) for book in items],
        meta=build_pagination_meta(page, limit, total),
    )


@router.get("/{book_id}", response_model=ApiResponse[BookResponse])
async def get_book(book_id: UUID, db: AsyncSession = Depends(get_db)):
    book = await books.get_book(db, str(book_id))
    return ApiResponse(
        message="Get book detail successfully",
        data=BookResponse.model_validate(book),
    )


@router.patch("/{book_id}", response_model=ApiResponse[BookResponse])
async def update_book(
    book_id: UUID,
    book_data: BookUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update only the fields present in the request body."""
    book = await books.update_book(
        db, str(book_id), book_data.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Book updated successfully",
        data=BookResponse.model_validate(book),
    )


@router.delete("/{book_id}", response_model=ApiResponse[None])
async def delete_book(
    book_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await books.delete_book(db, str(book_id))
    return ApiResponse(message="Book removed successfully")
