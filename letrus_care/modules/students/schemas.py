from datetime import date, datetime

from pydantic import Field

from letrus_care.shared.schemas import BaseSchema


class StudentCreate(BaseSchema):
    center_id: int
    student_code: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=200)
    birth_date: date | None = None
    phone: str | None = Field(None, max_length=50)
    guardian_name: str | None = Field(None, max_length=200)


class StudentResponse(BaseSchema):
    id: int
    center_id: int
    student_code: str
    full_name: str
    birth_date: date | None
    phone: str | None
    guardian_name: str | None
    status: str
    created_at: datetime
