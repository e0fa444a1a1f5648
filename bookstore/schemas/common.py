from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_serializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for record payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    next_page: int | None = None
    prev_page: int | None = None


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope shared by every endpoint."""

    success: bool = True
    message: str
    data: T | None = None
    meta: PaginationMeta | None = None

    @model_serializer(mode="wrap")
    def _omit_empty_sections(self, handler) -> dict[str, Any]:
        # data and meta are optional sections, not nullable fields
        result = handler(self)
        if self.data is None:
            result.pop("data", None)
        if self.meta is None:
            result.pop("meta", None)
        return result
