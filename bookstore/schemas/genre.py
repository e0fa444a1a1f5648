from datetime import datetime

from pydantic import field_validator

from bookstore.schemas.common import CamelModel


class GenreCreate(CamelModel):
    name: str

    @field_validator("name")
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Genre name is required")
        if len(v) > 100:
            raise ValueError("Genre name must be at most 100 characters")
        return v


class GenreUpdate(GenreCreate):
    pass


class GenreResponse(CamelModel):
    id: str
    name: str
    created_at: datetime | None = None
