from datetime import datetime

from pydantic import Field, field_validator

from bookstore.schemas.common import CamelModel


class BookCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    writer: str = Field(min_length=1, max_length=255)
    publisher: str = Field(min_length=1, max_length=255)
    publication_year: int = Field(ge=0)
    description: str | None = None
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    genre_id: str = Field(min_length=1)

    @field_validator("title", "writer", "publisher")
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank")
        return v


class BookUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    writer: str | None = Field(default=None, min_length=1, max_length=255)
    publisher: str | None = Field(default=None, min_length=1, max_length=255)
    publication_year: int | None = Field(default=None, ge=0)
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    stock_quantity: int | None = Field(default=None, ge=0)
    genre_id: str | None = Field(default=None, min_length=1)

    @field_validator("title", "writer", "publisher")
    def strip_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank")
        return v


class BookResponse(CamelModel):
    id: str
    title: str
    writer: str
    publisher: str
    publication_year: int
    description: str | None = None
    price: float
    stock_quantity: int
    genre_id: str
    genre_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookSnapshot(CamelModel):
    """Book as embedded in a transaction line."""

    id: str
    title: str
    price: float
