#!/usr/bin/env python3
"""
Link historical payments to the financial plan entries they paid.

Payments recorded before financial plans existed carry no link. The month
each one paid is read from a CSV export with the header:

    payment_id,month,year

For every row the matching entry is marked paid and linked. Entries that do
not exist are created already paid. Rows whose entry is linked to a
different payment are reported and left alone.

Usage:
  python3 scripts/link_payments_to_financial_plans.py payments.csv --dry-run
  python3 scripts/link_payments_to_financial_plans.py payments.csv --confirm
"""

import asyncio
import csv
import sys
from dataclasses import dataclass
from pathlib import Path

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.config import settings
from letrus_care.core.database import Database
from letrus_care.core.exceptions import AlreadyReconciledError, AppException
from letrus_care.core.logging import configure_logging
from letrus_care.models import FinancialPlanEntry, Payment
from letrus_care.modules.payments.service import PaymentService
from letrus_care.modules.school_years.calendar import canonical_month_name


@dataclass
class PaymentReference:
    payment_id: int
    month: str
    year: int


def read_references(path: Path) -> list[PaymentReference]:
    with path.open(newline="", encoding="utf-8") as fh:
        return [
            PaymentReference(
                payment_id=int(row["payment_id"]),
                month=row["month"].strip(),
                year=int(row["year"]),
            )
            for row in csv.DictReader(fh)
        ]


async def link_payments(
    session: AsyncSession, references: list[PaymentReference], dry_run: bool
) -> dict[str, int]:
    stats = {"linked": 0, "created": 0, "skipped": 0, "failed": 0}
    service = PaymentService(session)

    for ref in references:
        payment = (
            await session.execute(select(Payment).where(Payment.id == ref.payment_id))
        ).scalar_one_or_none()
        if payment is None:
            stats["failed"] += 1
            print(f"- Payment {ref.payment_id}: not found")
            continue

        already = (
            await session.execute(
                select(FinancialPlanEntry.id).where(FinancialPlanEntry.linked_payment_id == payment.id)
            )
        ).scalar_one_or_none()
        if already is not None:
            stats["skipped"] += 1
            print(f"- Payment {payment.id}: already linked to entry {already}")
            continue

        payment_id = payment.id
        try:
            month = canonical_month_name(ref.month)
            async with session.begin_nested():
                entry, created = await service.reconcile(payment, month, ref.year, materialize_missing=True)
        except AlreadyReconciledError as exc:
            stats["skipped"] += 1
            print(f"- Payment {payment_id}: {exc.message} (payment {exc.details['linked_payment_id']})")
            continue
        except AppException as exc:
            stats["failed"] += 1
            print(f"- Payment {payment_id}: {exc.code}: {exc.message}")
            continue

        stats["created" if created else "linked"] += 1
        action = "created paid entry" if created else "linked entry"
        print(f"- Payment {payment.id}: {action} {entry.id} ({month}/{ref.year})")

    if dry_run:
        await session.rollback()
        print("\n🧪 DRY-RUN: changes rolled back.")
    else:
        await session.commit()
        print("\n💾 Changes committed.")
    return stats


async def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Link historical payments to financial plan entries")
    parser.add_argument("csv_path", type=Path, help="CSV with payment_id,month,year")
    parser.add_argument("--dry-run", action="store_true", help="Preview changes, rollback at end")
    parser.add_argument("--confirm", action="store_true", help="Apply changes (COMMIT)")
    args = parser.parse_args()

    if args.dry_run == args.confirm:
        print("❌ ERROR: specify exactly one of --dry-run / --confirm")
        sys.exit(1)
    if not args.csv_path.is_file():
        print(f"❌ ERROR: {args.csv_path} not found")
        sys.exit(1)

    configure_logging()
    references = read_references(args.csv_path)

    print("\n" + "=" * 70)
    print("LINK PAYMENTS TO FINANCIAL PLANS")
    print("=" * 70)
    print(f"\n🌍 Environment: {settings.app_env}")
    print(f"🔧 Mode: {'DRY-RUN' if args.dry_run else 'APPLY (COMMIT)'}")
    print(f"📄 Rows: {len(references)}")

    database = Database(settings.database_url)
    database.init()
    try:
        async with database.session() as session:
            stats = await link_payments(session, references, dry_run=args.dry_run)
    finally:
        await database.dispose()

    print(
        f"\n📊 linked={stats['linked']} created={stats['created']} "
        f"skipped={stats['skipped']} failed={stats['failed']}"
    )


if __name__ == "__main__":
    asyncio.run(main())
