import uuid

from sqlalchemy import Column, String, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bookstore.database import Base
from bookstore.models.status import RecordStatus


class Genre(Base):
    __tablename__ = "genres"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    status = Column(
        Enum(RecordStatus, name="record_status", native_enum=False),
        nullable=False,
        default=RecordStatus.ACTIVE,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    books = relationship("Book", back_populates="genre")

    @property
    def is_active(self) -> bool:
        return self.status is RecordStatus.ACTIVE


# Names are unique regardless of case
Index("uq_genres_name_lower", func.lower(Genre.name), unique=True)
