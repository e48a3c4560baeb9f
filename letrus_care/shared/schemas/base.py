"""Response envelopes shared by every router."""

from math import ceil
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Reads ORM objects directly and accepts aliases as field names."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ErrorDetail(BaseSchema):
    # None when the error is not about a single input field
    field: str | None = None
    message: str


class SuccessResponse(BaseSchema, Generic[T]):
    success: bool = True
    data: T
    message: str | None = None


class ErrorResponse(BaseSchema):
    """
    Body of every failed request.

    `code` is stable and meant for clients (NO_ACTIVE_SCHOOL_YEAR,
    ALREADY_RECONCILED, ...); `message` is for people.
    """

    success: bool = False
    data: None = None
    code: str
    message: str
    errors: list[ErrorDetail] = Field(default_factory=list)


class PaginatedResponse(BaseSchema, Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def create(cls, items: list[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        """Page count is at least 1 so an empty listing still has a first page."""
        pages = max(1, ceil(total / limit)) if limit > 0 else 1
        return cls(items=items, total=total, page=page, limit=limit, pages=pages)
