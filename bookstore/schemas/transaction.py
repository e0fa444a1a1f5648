from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from bookstore.schemas.auth import UserSummary
from bookstore.schemas.book import BookSnapshot
from bookstore.schemas.common import CamelModel


class LineItemCreate(CamelModel):
    """One (book, quantity) pair of a purchase."""

    book_id: str
    quantity: int = Field(gt=0, strict=True)

    @field_validator("book_id")
    def validate_book_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("bookId is required")
        return v


class TransactionCreate(CamelModel):
    user_id: str
    books: list[LineItemCreate] = Field(min_length=1)

    @field_validator("user_id")
    def validate_user_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("userId is required")
        return v


class TransactionSummary(BaseModel):
    """Result of a purchase."""

    transaction_id: str
    total_quantity: int
    total_price: float


class TransactionLineResponse(CamelModel):
    quantity: int
    unit_price: float
    book: BookSnapshot


class TransactionResponse(CamelModel):
    id: str
    total: float
    total_quantity: int
    created_at: datetime | None = None
    user: UserSummary
    lines: list[TransactionLineResponse]


class GenreSales(CamelModel):
    name: str
    count: int


class TransactionStatistics(CamelModel):
    total_transactions: int
    average_transaction_value: float
    most_sold_genre: GenreSales | None = None
    least_sold_genre: GenreSales | None = None
