from datetime import datetime

from pydantic import Field

from letrus_care.shared.schemas import BaseSchema


class CenterCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=200)
    nif: str | None = Field(None, max_length=50)
    phone: str | None = Field(None, max_length=50)


class CenterResponse(BaseSchema):
    id: int
    name: str
    nif: str | None
    phone: str | None
    is_active: bool
    created_at: datetime
