#!/usr/bin/env python3
"""
Generate missing financial plan entries for existing enrollments.

Targets enrollments still "enrolled" whose plan never completed
(has_financial_plan = false). Generation only inserts missing months, so
running this twice is harmless.

Usage:
  python3 scripts/backfill_financial_plans.py --dry-run --center-id 1
  python3 scripts/backfill_financial_plans.py --confirm --center-id 1
  python3 scripts/backfill_financial_plans.py --confirm            # every center
"""

import asyncio
import sys
from pathlib import Path

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.config import settings
from letrus_care.core.database import Database
from letrus_care.core.exceptions import AppException
from letrus_care.core.logging import configure_logging
from letrus_care.models import Enrollment
from letrus_care.modules.enrollments.models import EnrollmentStatus
from letrus_care.modules.financial_plans.generator import FinancialPlanGenerator


async def backfill(session: AsyncSession, center_id: int | None, dry_run: bool) -> dict[str, int]:
    query = select(Enrollment).where(
        Enrollment.has_financial_plan.is_(False),
        Enrollment.status == EnrollmentStatus.ENROLLED.value,
    )
    if center_id is not None:
        query = query.where(Enrollment.center_id == center_id)
    enrollments = list((await session.execute(query.order_by(Enrollment.id))).scalars().all())

    stats = {"enrollments": len(enrollments), "completed": 0, "incomplete": 0, "blocked": 0, "entries": 0}
    if not enrollments:
        print("✅ Nothing to backfill: every enrollment has a complete plan.")
        return stats

    print(f"🔎 Enrollments without a complete plan: {len(enrollments)}")
    generator = FinancialPlanGenerator(session)

    for enrollment in enrollments:
        # Attributes expire when a savepoint rolls back
        enrollment_id = enrollment.id
        try:
            async with session.begin_nested():
                result = await generator.generate(enrollment)
        except AppException as exc:
            stats["blocked"] += 1
            print(f"- Enrollment {enrollment_id}: blocked ({exc.code}: {exc.message})")
            continue

        stats["entries"] += len(result.created)
        if result.complete:
            stats["completed"] += 1
        else:
            stats["incomplete"] += 1
        print(
            f"- Enrollment {enrollment_id}: {len(result.created)} created, "
            f"{len(result.skipped)} skipped, {len(result.failed)} failed"
        )

    if dry_run:
        await session.rollback()
        print("\n🧪 DRY-RUN: changes rolled back.")
    else:
        await session.commit()
        print("\n💾 Changes committed.")
    return stats


async def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="Generate missing financial plan entries")
    parser.add_argument("--dry-run", action="store_true", help="Preview changes, rollback at end")
    parser.add_argument("--confirm", action="store_true", help="Apply changes (COMMIT)")
    parser.add_argument("--center-id", type=int, default=None, help="Limit to one center")
    args = parser.parse_args()

    if args.dry_run == args.confirm:
        print("❌ ERROR: specify exactly one of --dry-run / --confirm")
        sys.exit(1)

    configure_logging()
    print("\n" + "=" * 70)
    print("BACKFILL FINANCIAL PLANS")
    print("=" * 70)
    print(f"\n🌍 Environment: {settings.app_env}")
    print(f"🔧 Mode: {'DRY-RUN' if args.dry_run else 'APPLY (COMMIT)'}")
    if args.center_id is not None:
        print(f"🎯 Filter: center_id={args.center_id}")

    database = Database(settings.database_url)
    database.init()
    try:
        async with database.session() as session:
            stats = await backfill(session, args.center_id, dry_run=args.dry_run)
    finally:
        await database.dispose()

    print(
        f"\n📊 {stats['enrollments']} enrollment(s): {stats['completed']} completed, "
        f"{stats['incomplete']} incomplete, {stats['blocked']} blocked; "
        f"{stats['entries']} entries created"
    )


if __name__ == "__main__":
    asyncio.run(main())
