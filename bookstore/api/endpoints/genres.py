from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.config import settings
from bookstore.core.dependencies import get_current_user
from bookstore.core.pagination import build_pagination_meta
from bookstore.database import get_db
from bookstore.models.user import User
from bookstore.schemas.common import ApiResponse
from bookstore.schemas.genre import GenreCreate, GenreResponse, GenreUpdate
from bookstore.services import genres

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[GenreResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_genre(
    genre_data: GenreCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a genre. Names are unique regardless of case."""
    genre = await genres.create_genre(db, genre_data.name)
    return ApiResponse(
        message="Genre created successfully",
        data=GenreResponse.model_validate(genre),
    )


@router.get("", response_model=ApiResponse[list[GenreResponse]])
async def list_genres(
    page: int = Query(1, ge=1, description="Page number (starts at 1)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: str | None = Query(None, description="Case-insensitive name filter"),
    order_by_name: Literal["asc", "desc"] = Query("asc", alias="orderByName"),
    db: AsyncSession = Depends(get_db),
):
    """
    List active genres with pagination.

    - **page**: Page number (starts at 1)
    - **limit**: Items per page
    - **search**: Substring of the genre name
    - **orderByName**: asc or desc
    """
    items, total = await genres.list_genres(db, page, limit, search, order_by_name)
    return ApiResponse(
        message="Get all genres successfully",
        data=[GenreResponse.model_validate(genre) for genre in items],
        meta=build_pagination_meta(page, limit, total),
    )


@router.get("/{genre_id}", response_model=ApiResponse[GenreResponse])
async def get_genre(genre_id: UUID, db: AsyncSession = Depends(get_db)):
    genre = await genres.get_active_genre(db, str(genre_id))
    return ApiResponse(
        message="Get genre detail successfully",
        data=GenreResponse.model_validate(genre),
    )


@router.patch("/{genre_id}", response_model=ApiResponse[GenreResponse])
async def update_genre(
    genre_id: UUID,
    genre_data: GenreUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    genre = await genres.update_genre(db, str(genre_id), genre_data.name)
    return ApiResponse(
        message="Genre updated successfully",
        data=GenreResponse.model_validate(genre),
    )


@router.delete("/{genre_id}", response_model=ApiResponse[None])
async def delete_genre(
    genre_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a genre. Refused while active books still use it."""
    await genres.delete_genre(db, str(genre_id))
    return ApiResponse(message="Genre removed successfully")
