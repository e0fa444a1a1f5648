"""
Purchase workflow.

A purchase validates the user and the requested books, checks stock, decrements
it and records the transaction with its lines, all inside one database
transaction. Stock is decremented with a conditional UPDATE
(``stock_quantity >= quantity``) so two concurrent purchases can never both
take the last units, even on databases without row locks.
"""
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookstore.core.exceptions import (
    AppError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from bookstore.core.logging import app_logger
from bookstore.core.pagination import page_offset
from bookstore.models.book import Book
from bookstore.models.genre import Genre
from bookstore.models.status import RecordStatus
from bookstore.models.transaction import Transaction, TransactionLine
from bookstore.models.user import User


@dataclass(frozen=True)
class LineItem:
    """One (book, quantity) pair of a purchase request."""

    book_id: str
    quantity: int


@dataclass(frozen=True)
class GenreSales:
    name: str
    count: int


@dataclass(frozen=True)
class TransactionStatistics:
    total_transactions: int
    average_transaction_value: float
    most_sold_genre: GenreSales | None
    least_sold_genre: GenreSales | None


def _insufficient_stock(title: str, available: int, requested: int) -> ConflictError:
    return ConflictError(
        f"Insufficient stock for book: {title}. "
        f"Available: {available}, Requested: {requested}"
    )


def _with_details(query):
    return query.options(
        selectinload(Transaction.user),
        selectinload(Transaction.lines).selectinload(TransactionLine.book),
    )


def validate_purchase(user_id: str, line_items: Sequence[LineItem]) -> None:
    """
    Check purchase input before any storage access.

    Raises:
        ValidationError: on a blank user id, an empty or malformed line list,
            or a book requested twice
    """
    if not user_id or not user_id.strip():
        raise ValidationError("userId is required")
    if not line_items:
        raise ValidationError("At least one book is required")

    seen: set[str] = set()
    for item in line_items:
        if not item.book_id or not item.book_id.strip():
            raise ValidationError("Each book requires a valid bookId")
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Each book requires a positive integer quantity")
        if item.book_id in seen:
            raise ValidationError(f"Duplicate bookId in purchase: {item.book_id}")
        seen.add(item.book_id)


async def _decrement_stock(db: AsyncSession, book: Book, quantity: int) -> None:
    result = await db.execute(
        update(Book)
        .where(
            Book.id == book.id,
            Book.status == RecordStatus.ACTIVE,
            Book.stock_quantity >= quantity,
        )
        .values(stock_quantity=Book.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Another purchase took the stock between our read and this update
        available = await db.scalar(
            select(Book.stock_quantity).where(Book.id == book.id)
        )
        raise _insufficient_stock(book.title, available or 0, quantity)


async def create_transaction(
    db: AsyncSession, user_id: str, line_items: Sequence[LineItem]
) -> Transaction:
    """
    Purchase books for a user.

    Args:
        db: Session; the purchase is committed or rolled back as one unit
        user_id: Id of the purchasing user
        line_items: Requested books in input order

    Returns:
        Transaction: The persisted transaction with user and lines loaded

    Raises:
        ValidationError: on malformed input
        NotFoundError: if the user or any book doesn't exist
        ConflictError: if a book lacks stock for its requested quantity
    """
    validate_purchase(user_id, line_items)

    try:
        user = (
            await db.execute(select(User).where(User.id == user_id))
        ).scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")

        book_ids = [item.book_id for item in line_items]
        result = await db.execute(
            select(Book)
            .where(Book.id.in_(book_ids), Book.status == RecordStatus.ACTIVE)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        books = {book.id: book for book in result.scalars().all()}

        missing = [book_id for book_id in book_ids if book_id not in books]
        if missing:
            raise NotFoundError(f"Book(s) not found: {', '.join(missing)}")

        # Check every line before touching stock so a failure leaves nothing half-done
        for item in line_items:
            book = books[item.book_id]
            if book.stock_quantity < item.quantity:
                raise _insufficient_stock(book.title, book.stock_quantity, item.quantity)

        total = sum(books[item.book_id].price * item.quantity for item in line_items)

        for item in line_items:
            await _decrement_stock(db, books[item.book_id], item.quantity)

        transaction = Transaction(
            user_id=user.id,
            total=total,
            lines=[
                TransactionLine(
                    book_id=item.book_id,
                    position=position,
                    quantity=item.quantity,
                    unit_price=books[item.book_id].price,
                )
                for position, item in enumerate(line_items)
            ],
        )
        db.add(transaction)
        await db.flush()
        transaction_id = transaction.id
        await db.commit()
    except AppError as e:
        await db.rollback()
        app_logger.warning(f"Purchase by user {user_id} rejected: {e.message}")
        raise
    except Exception:
        await db.rollback()
        raise

    app_logger.info(
        f"Transaction {transaction_id} created for user {user_id}: "
        f"{len(line_items)} line(s), total {total}"
    )
    return await get_transaction(db, transaction_id)


async def get_transaction(db: AsyncSession, transaction_id: str) -> Transaction:
    result = await db.execute(
        _with_details(select(Transaction))
        .where(Transaction.id == transaction_id)
        .execution_options(populate_existing=True)
    )
    transaction = result.scalar_one_or_none()
    if transaction is None:
        raise NotFoundError("Transaction not found")
    return transaction


async def list_transactions(
    db: AsyncSession, page: int, limit: int
) -> tuple[list[Transaction], int]:
    """Return one page of transactions, newest first, and the total count."""
    total = await db.scalar(select(func.count()).select_from(Transaction))
    result = await db.execute(
        _with_details(select(Transaction))
        .order_by(Transaction.created_at.desc(), Transaction.id)
        .limit(limit)
        .offset(page_offset(page, limit))
    )
    return list(result.scalars().all()), total or 0


async def get_transaction_statistics(db: AsyncSession) -> TransactionStatistics:
    """
    Aggregate sales figures.

    A genre's sold count is the number of transaction lines referencing its
    active books. Genres with equal counts keep the database's row order.
    """
    total_transactions = await db.scalar(select(func.count()).select_from(Transaction))
    average = await db.scalar(select(func.avg(Transaction.total)))

    sold_count = func.count(TransactionLine.id).label("sold_count")
    rows = (
        await db.execute(
            select(Genre.name, sold_count)
            .join(Book, Book.genre_id == Genre.id)
            .join(TransactionLine, TransactionLine.book_id == Book.id)
            .where(Book.status == RecordStatus.ACTIVE)
            .group_by(Genre.id, Genre.name)
            .order_by(desc(sold_count))
        )
    ).all()

    most_sold = least_sold = None
    if rows:
        most_sold = GenreSales(name=rows[0].name, count=rows[0].sold_count)
        least_sold = GenreSales(name=rows[-1].name, count=rows[-1].sold_count)

    return TransactionStatistics(
        total_transactions=total_transactions or 0,
        average_transaction_value=float(average or 0),
        most_sold_genre=most_sold,
        least_sold_genre=least_sold,
    )
