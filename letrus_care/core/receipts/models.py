from sqlalchemy import BigInteger, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from letrus_care.core.database.base import Base, BigIntPK


class ReceiptSequence(Base):
    """Last receipt number issued per center and year."""

    __tablename__ = "receipt_sequences"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    center_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("centers.id"), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    last_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("center_id", "year", name="uq_receipt_sequences_center_year"),
    )
