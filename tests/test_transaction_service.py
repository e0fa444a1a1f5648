"""Tests for the purchase workflow called directly, without HTTP."""
import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.exceptions import ConflictError, NotFoundError, ValidationError
from bookstore.core.security import get_password_hash
from bookstore.models import Book, Genre, Transaction, User
from bookstore.services import transactions
from bookstore.services.transactions import LineItem, validate_purchase


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    user = User(
        username="buyer",
        email="buyer@example.com",
        hashed_password=get_password_hash("BuyerPass1!"),
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def genre(db_session: AsyncSession) -> Genre:
    genre = Genre(name="Fiction")
    db_session.add(genre)
    await db_session.commit()
    return genre


@pytest.fixture
def add_book(db_session: AsyncSession, genre: Genre):
    async def _add_book(title: str, stock: int, price: float = 10.0) -> Book:
        book = Book(
            title=title,
            writer="Writer",
            publisher="Publisher",
            publication_year=2020,
            price=price,
            stock_quantity=stock,
            genre_id=genre.id,
        )
        db_session.add(book)
        await db_session.commit()
        return book

    return _add_book


async def stock_of(session: AsyncSession, book_id: str) -> int:
    return await session.scalar(select(Book.stock_quantity).where(Book.id == book_id))


@pytest.mark.parametrize(
    "user_id, line_items, message",
    [
        ("", [LineItem("b", 1)], "userId is required"),
        ("   ", [LineItem("b", 1)], "userId is required"),
        ("u", [], "At least one book is required"),
        ("u", [LineItem("", 1)], "valid bookId"),
        ("u", [LineItem("b", 0)], "positive integer quantity"),
        ("u", [LineItem("b", -1)], "positive integer quantity"),
        ("u", [LineItem("b", 1.5)], "positive integer quantity"),
        ("u", [LineItem("b", True)], "positive integer quantity"),
        ("u", [LineItem("b", 1), LineItem("b", 2)], "Duplicate bookId in purchase: b"),
    ],
)
def test_validate_purchase_rejects_bad_input(user_id, line_items, message):
    with pytest.raises(ValidationError) as exc_info:
        validate_purchase(user_id, line_items)

    assert message in exc_info.value.message
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_validation_happens_before_storage(db_session: AsyncSession):
    """Malformed input fails as ValidationError even when the user doesn't exist."""
    with pytest.raises(ValidationError):
        await transactions.create_transaction(db_session, "missing-user", [LineItem("b", 0)])


@pytest.mark.asyncio
async def test_create_transaction_returns_loaded_transaction(
    db_session: AsyncSession, user: User, add_book
):
    book = await add_book("Loaded", stock=4, price=2.5)

    transaction = await transactions.create_transaction(
        db_session, user.id, [LineItem(book.id, 4)]
    )

    assert transaction.total == 10.0
    assert transaction.total_quantity == 4
    assert transaction.user.email == "buyer@example.com"
    assert [(line.book.title, line.quantity, line.unit_price) for line in transaction.lines] == [
        ("Loaded", 4, 2.5)
    ]
    assert await stock_of(db_session, book.id) == 0


@pytest.mark.asyncio
async def test_lines_keep_input_order(db_session: AsyncSession, user: User, add_book):
    books = [await add_book(title, stock=3) for title in ["Zeta", "Alpha", "Mu"]]

    transaction = await transactions.create_transaction(
        db_session, user.id, [LineItem(book.id, 1) for book in books]
    )

    assert [line.book.title for line in transaction.lines] == ["Zeta", "Alpha", "Mu"]


@pytest.mark.asyncio
async def test_unknown_user(db_session: AsyncSession, add_book):
    book = await add_book("Any", stock=1)

    with pytest.raises(NotFoundError, match="User not found"):
        await transactions.create_transaction(db_session, "no-such-user", [LineItem(book.id, 1)])


@pytest.mark.asyncio
async def test_insufficient_stock_rolls_back(db_session: AsyncSession, user: User, add_book):
    # A failed purchase rolls the session back, which expires loaded objects
    user_id = user.id
    first_id = (await add_book("First", stock=3)).id
    second_id = (await add_book("Second", stock=1)).id

    with pytest.raises(ConflictError) as exc_info:
        await transactions.create_transaction(
            db_session, user_id, [LineItem(first_id, 3), LineItem(second_id, 2)]
        )

    assert exc_info.value.message == (
        "Insufficient stock for book: Second. Available: 1, Requested: 2"
    )
    assert await stock_of(db_session, first_id) == 3
    assert await stock_of(db_session, second_id) == 1
    assert await db_session.scalar(select(func.count()).select_from(Transaction)) == 0


@pytest.mark.asyncio
async def test_stock_never_goes_negative(db_session: AsyncSession, user: User, add_book):
    user_id = user.id
    book_id = (await add_book("Counted", stock=5)).id
    outcomes = []

    for quantity in [2, 2, 2, 1, 1]:
        try:
            await transactions.create_transaction(db_session, user_id, [LineItem(book_id, quantity)])
            outcomes.append("ok")
        except ConflictError:
            outcomes.append("conflict")
        assert await stock_of(db_session, book_id) >= 0

    assert outcomes == ["ok", "ok", "conflict", "ok", "conflict"]
    assert await stock_of(db_session, book_id) == 0


@pytest.mark.asyncio
async def test_concurrent_purchases_of_last_unit(TestSessionLocal, user: User, add_book):
    """Two buyers race for one copy: exactly one wins, stock ends at zero."""
    book = await add_book("Last Copy", stock=1)

    async def buy():
        async with TestSessionLocal() as session:
            return await transactions.create_transaction(session, user.id, [LineItem(book.id, 1)])

    results = await asyncio.gather(buy(), buy(), return_exceptions=True)

    successes = [r for r in results if isinstance(r, Transaction)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], ConflictError)
    assert "Insufficient stock for book: Last Copy" in failures[0].message

    async with TestSessionLocal() as session:
        assert await stock_of(session, book.id) == 0
        assert await session.scalar(select(func.count()).select_from(Transaction)) == 1


@pytest.mark.asyncio
async def test_statistics_ignore_deleted_books(db_session: AsyncSession, user: User, add_book):
    kept = await add_book("Kept", stock=5)
    dropped = await add_book("Dropped", stock=5)
    await transactions.create_transaction(db_session, user.id, [LineItem(kept.id, 1)])
    await transactions.create_transaction(db_session, user.id, [LineItem(dropped.id, 1)])

    from bookstore.services.books import delete_book
    await delete_book(db_session, dropped.id)

    stats = await transactions.get_transaction_statistics(db_session)

    assert stats.total_transactions == 2
    assert stats.average_transaction_value == 10.0
    assert stats.most_sold_genre.count == 1
    assert stats.most_sold_genre == stats.least_sold_genre
