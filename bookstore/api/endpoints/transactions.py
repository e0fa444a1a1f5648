from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.config import settings
from bookstore.core.dependencies import get_current_user
from bookstore.core.pagination import build_pagination_meta
from bookstore.database import get_db
from bookstore.models.user import User
from bookstore.schemas.common import ApiResponse
from bookstore.schemas.transaction import (
    TransactionCreate,
    TransactionResponse,
    TransactionStatistics,
    TransactionSummary,
)
from bookstore.services import transactions
from bookstore.services.transactions import LineItem

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[TransactionSummary],
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Purchase books for a user.

    - **userId**: Id of the purchasing user
    - **books**: Non-empty list of `{bookId, quantity}`; each book at most once

    Stock of every book is decremented atomically with the creation of the
    transaction. Responds 404 for an unknown user or book and 409 when a book
    lacks stock.
    """
    transaction = await transactions.create_transaction(
        db,
        transaction_data.user_id,
        [LineItem(book_id=item.book_id, quantity=item.quantity) for item in transaction_data.books],
    )
    return ApiResponse(
        message="Transaction created successfully",
        data=TransactionSummary(
            transaction_id=transaction.id,
            total_quantity=transaction.total_quantity,
            total_price=transaction.total,
        ),
    )


@router.get("", response_model=ApiResponse[list[TransactionResponse]])
async def list_transactions(
    page: int = Query(1, ge=1, description="Page number (starts at 1)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List transactions ordered by created_at descending (newest first)."""
    items, total = await transactions.list_transactions(db, page, limit)
    return ApiResponse(
        message="Get all transactions successfully",
        data=[TransactionResponse.model_validate(t) for t in items],
        meta=build_pagination_meta(page, limit, total),
    )


@router.get("/statistics", response_model=ApiResponse[TransactionStatistics])
async def get_transaction_statistics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Sales statistics: transaction count, average transaction total, and the
    genres with the most and fewest sold lines.
    """
    stats = await transactions.get_transaction_statistics(db)
    return ApiResponse(
        message="Get transactions statistics successfully",
        data=TransactionStatistics.model_validate(stats),
    )


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
async def get_transaction(
    transaction_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    transaction = await transactions.get_transaction(db, str(transaction_id))
    return ApiResponse(
        message="Get transaction detail successfully",
        data=TransactionResponse.model_validate(transaction),
    )
