import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.receipts.models import ReceiptSequence
from letrus_care.shared.utils.dates import business_now

logger = logging.getLogger(__name__)

RECEIPT_PREFIX = "REC"


def format_receipt_number(center_id: int, year: int, number: int) -> str:
    return f"{RECEIPT_PREFIX}-{center_id}-{year}-{number:06d}"


class ReceiptNumberGenerator:
    """
    Receipt numbers REC-<center>-<YYYY>-<NNNNNN>, one sequence per center and year.

    Runs inside the payment transaction: the sequence row stays locked until
    the payment commits, so numbers are gap-free and never shared.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _locked_sequence(self, center_id: int, year: int) -> ReceiptSequence | None:
        result = await self.session.execute(
            select(ReceiptSequence)
            .where(ReceiptSequence.center_id == center_id, ReceiptSequence.year == year)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def _open_sequence(self, center_id: int, year: int) -> ReceiptSequence:
        """First receipt of the year; another transaction may open it at the same time."""
        try:
            async with self.session.begin_nested():
                self.session.add(ReceiptSequence(center_id=center_id, year=year, last_number=0))
        except IntegrityError:
            logger.info("Receipt sequence %s/%s opened concurrently, reusing it", center_id, year)
        sequence = await self._locked_sequence(center_id, year)
        if sequence is None:
            raise RuntimeError(f"Receipt sequence {center_id}/{year} vanished after insert")
        return sequence

    async def next_number(self, center_id: int, year: int | None = None) -> str:
        year = year or business_now().year
        sequence = await self._locked_sequence(center_id, year)
        if sequence is None:
            sequence = await self._open_sequence(center_id, year)

        sequence.last_number += 1
        await self.session.flush()
        return format_receipt_number(center_id, year, sequence.last_number)
