from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.receipts.models import ReceiptSequence
from letrus_care.core.receipts.numbers import ReceiptNumberGenerator, format_receipt_number


class TestReceiptNumbers:
    def test_format(self):
        assert format_receipt_number(7, 2026, 42) == "REC-7-2026-000042"

    async def test_sequence_per_center_and_year(self, db_session: AsyncSession, factory):
        center = await factory.center()
        other = await factory.center("Centro B")
        generator = ReceiptNumberGenerator(db_session)

        assert await generator.next_number(center.id, year=2026) == f"REC-{center.id}-2026-000001"
        assert await generator.next_number(center.id, year=2026) == f"REC-{center.id}-2026-000002"
        assert await generator.next_number(other.id, year=2026) == f"REC-{other.id}-2026-000001"
        assert await generator.next_number(center.id, year=2027) == f"REC-{center.id}-2027-000001"

    async def test_sequence_opened_concurrently(self, db_session: AsyncSession, factory, monkeypatch):
        """The row another transaction inserted first is reused, not duplicated."""
        center = await factory.center()
        db_session.add(ReceiptSequence(center_id=center.id, year=2026, last_number=4))
        await db_session.commit()

        generator = ReceiptNumberGenerator(db_session)
        locked_sequence = generator._locked_sequence
        lookups = []

        async def not_visible_on_first_lookup(center_id, year):
            lookups.append(year)
            if len(lookups) == 1:
                return None
            return await locked_sequence(center_id, year)

        monkeypatch.setattr(generator, "_locked_sequence", not_visible_on_first_lookup)
        number = await generator.next_number(center.id, year=2026)
        await db_session.commit()

        assert number == f"REC-{center.id}-2026-000005"
        count = await db_session.execute(
            select(func.count(ReceiptSequence.id)).where(ReceiptSequence.center_id == center.id)
        )
        assert count.scalar() == 1
