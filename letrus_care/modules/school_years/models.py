"""School year model."""

from datetime import date

from sqlalchemy import BigInteger, Boolean, Date, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import BaseModel


class SchoolYear(BaseModel):
    """Academic period of a center. At most one per center is current."""

    __tablename__ = "school_years"

    center_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("centers.id"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index(
            "uq_school_years_one_current_per_center",
            "center_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )
