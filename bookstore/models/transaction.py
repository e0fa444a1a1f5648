import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bookstore.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    total = Column(Float, nullable=False)  # Sum of quantity * unit_price over lines
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User", back_populates="transactions")
    lines = relationship(
        "TransactionLine",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLine.position",
    )

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


class TransactionLine(Base):
    __tablename__ = "transaction_lines"
    __table_args__ = (
        UniqueConstraint("transaction_id", "book_id", name="uq_transaction_line_book"),
        CheckConstraint("quantity > 0", name="transaction_lines_quantity_positive"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    transaction_id = Column(
        String(36), ForeignKey("transactions.id"), nullable=False, index=True
    )
    book_id = Column(String(36), ForeignKey("books.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # Input order within the purchase
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)  # book.price at purchase time

    transaction = relationship("Transaction", back_populates="lines")
    book = relationship("Book", back_populates="transaction_lines")
