import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bookstore.database import Base
from bookstore.models.status import RecordStatus


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="books_stock_nonneg"),
        CheckConstraint("price >= 0", name="books_price_nonneg"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), unique=True, nullable=False)
    writer = Column(String(255), nullable=False)
    publisher = Column(String(255), nullable=False)
    publication_year = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    # Only decremented by the purchase workflow
    stock_quantity = Column(Integer, nullable=False, default=0)
    genre_id = Column(String(36), ForeignKey("genres.id"), nullable=False, index=True)
    status = Column(
        Enum(RecordStatus, name="record_status", native_enum=False),
        nullable=False,
        default=RecordStatus.ACTIVE,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    genre = relationship("Genre", back_populates="books")
    transaction_lines = relationship("TransactionLine", back_populates="book")

    @property
    def is_active(self) -> bool:
        return self.status is RecordStatus.ACTIVE

    @property
    def genre_name(self) -> str | None:
        return self.genre.name if self.genre is not None else None
