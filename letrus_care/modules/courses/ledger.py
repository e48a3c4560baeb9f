"""
Tuition fee ledger: versioned prices per course.

Methods flush but never commit; the calling service owns the transaction so
that "deactivate old + insert new" lands as one unit.
"""

import logging
from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import (
    CourseNotFoundError,
    NoHistoricalFeeError,
    NotFoundError,
    ValidationError,
)
from letrus_care.core.database.base import utcnow
from letrus_care.modules.courses.models import Course, TuitionFee, TuitionFeeStatus
from letrus_care.modules.courses.schemas import TuitionFeeFields
from letrus_care.shared.utils.dates import as_utc_instant
from letrus_care.shared.utils.money import round_money

logger = logging.getLogger(__name__)


class TuitionFeeLedger:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_version(self, tuition_fee_id: int) -> TuitionFee:
        result = await self.db.execute(select(TuitionFee).where(TuitionFee.id == tuition_fee_id))
        version = result.scalar_one_or_none()
        if not version:
            raise NotFoundError("Tuition fee", tuition_fee_id)
        return version

    async def find_active_fee(self, course_id: int) -> TuitionFee | None:
        result = await self.db.execute(
            select(TuitionFee).where(
                TuitionFee.course_id == course_id,
                TuitionFee.status == TuitionFeeStatus.ACTIVE.value,
            )
        )
        return result.scalar_one_or_none()

    async def get_active_fee(self, course_id: int) -> TuitionFee:
        """Active version of a course. Missing means corrupted data."""
        version = await self.find_active_fee(course_id)
        if not version:
            raise NotFoundError("Active tuition fee for course", course_id)
        return version

    async def get_fee_as_of(self, course_id: int, as_of: date | datetime) -> TuitionFee:
        """
        Version in force at `as_of`: latest created_at <= as_of.

        A date means the end of that business day. Raises NoHistoricalFeeError
        when every version is newer; there is no fallback to the active fee.
        """
        instant = as_utc_instant(as_of)
        result = await self.db.execute(
            select(TuitionFee)
            .where(TuitionFee.course_id == course_id, TuitionFee.created_at <= instant)
            .order_by(TuitionFee.created_at.desc(), TuitionFee.id.desc())
            .limit(1)
        )
        version = result.scalar_one_or_none()
        if not version:
            raise NoHistoricalFeeError(course_id, as_of)
        return version

    async def list_versions(self, course_id: int) -> list[TuitionFee]:
        """Fee history, newest first."""
        result = await self.db.execute(
            select(TuitionFee)
            .where(TuitionFee.course_id == course_id)
            .order_by(TuitionFee.created_at.desc(), TuitionFee.id.desc())
        )
        return list(result.scalars().all())

    async def replace_fee(
        self,
        course_id: int,
        fields: TuitionFeeFields,
        effective_at: datetime | None = None,
        user_id: int | None = None,
    ) -> TuitionFee:
        """
        Deactivate the current active version (if any) and insert a new active one.

        The course row is locked first so concurrent edits of the same course
        serialise; the partial unique index rejects a second active version
        if they do not.
        """
        course_result = await self.db.execute(
            select(Course).where(Course.id == course_id).with_for_update()
        )
        course = course_result.scalar_one_or_none()
        if not course:
            raise CourseNotFoundError(course_id)

        created_at = as_utc_instant(effective_at) if effective_at else utcnow()

        current_result = await self.db.execute(
            select(TuitionFee)
            .where(
                TuitionFee.course_id == course_id,
                TuitionFee.status == TuitionFeeStatus.ACTIVE.value,
            )
            .with_for_update()
        )
        current = current_result.scalar_one_or_none()
        if current is not None:
            if as_utc_instant(current.created_at) > created_at:
                raise ValidationError(
                    "New tuition fee cannot predate the current version",
                    field="effective_at",
                )
            current.status = TuitionFeeStatus.INACTIVE.value
            await self.db.flush()

        version = TuitionFee(
            course_id=course_id,
            fee=round_money(fields.fee),
            fee_fine=round_money(fields.fee_fine),
            enrollment_fee=round_money(fields.enrollment_fee),
            confirmation_enrollment_fee=round_money(fields.confirmation_enrollment_fee),
            status=TuitionFeeStatus.ACTIVE.value,
            created_at=created_at,
        )
        self.db.add(version)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.REPLACE_TUITION_FEE,
            entity_type="Course",
            entity_id=course_id,
            user_id=user_id,
            center_id=course.center_id,
            old_values={"tuition_fee_id": current.id, "fee": str(current.fee)} if current else None,
            new_values={"tuition_fee_id": version.id, "fee": str(version.fee)},
        )
        logger.info(
            "Course %s tuition fee replaced: version %s -> %s",
            course_id,
            current.id if current else None,
            version.id,
        )
        return version

    async def deactivate_all(self, course_id: int) -> int:
        """Deactivate every active version of a course (course shutdown)."""
        result = await self.db.execute(
            update(TuitionFee)
            .where(
                TuitionFee.course_id == course_id,
                TuitionFee.status == TuitionFeeStatus.ACTIVE.value,
            )
            .values(status=TuitionFeeStatus.INACTIVE.value)
        )
        return result.rowcount or 0
