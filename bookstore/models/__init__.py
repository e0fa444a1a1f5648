from bookstore.database import Base

# Import all models here so Base.metadata knows every table
from bookstore.models.status import RecordStatus
from bookstore.models.user import User
from bookstore.models.genre import Genre
from bookstore.models.book import Book
from bookstore.models.transaction import Transaction, TransactionLine

__all__ = [
    "Base",
    "RecordStatus",
    "User",
    "Genre",
    "Book",
    "Transaction",
    "TransactionLine",
]
