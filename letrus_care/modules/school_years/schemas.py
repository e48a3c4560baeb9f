from datetime import date, datetime

from pydantic import Field, model_validator

from letrus_care.shared.schemas import BaseSchema


class SchoolYearCreate(BaseSchema):
    center_id: int
    description: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date
    is_current: bool = False

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SchoolYearUpdate(BaseSchema):
    description: str | None = Field(None, min_length=1, max_length=100)
    start_date: date | None = None
    end_date: date | None = None


class SchoolYearResponse(BaseSchema):
    id: int
    center_id: int
    description: str
    start_date: date
    end_date: date
    is_current: bool
    created_at: datetime


class BillingMonthResponse(BaseSchema):
    month: str
    year: int
    month_index: int
    due_date: date
