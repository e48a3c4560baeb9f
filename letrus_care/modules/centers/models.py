"""Center (tenant) model."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import BaseModel


class Center(BaseModel):
    """A school / learning center. Every business row belongs to one."""

    __tablename__ = "centers"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    nif: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
