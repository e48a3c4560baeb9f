"""Service for School Years module."""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import NotFoundError, ValidationError
from letrus_care.modules.school_years.models import SchoolYear
from letrus_care.modules.school_years.schemas import SchoolYearCreate, SchoolYearUpdate

logger = logging.getLogger(__name__)


class SchoolYearService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_school_year(self, data: SchoolYearCreate, created_by_id: int | None = None) -> SchoolYear:
        school_year = SchoolYear(
            center_id=data.center_id,
            description=data.description,
            start_date=data.start_date,
            end_date=data.end_date,
            is_current=False,
        )
        self.db.add(school_year)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="SchoolYear",
            entity_id=school_year.id,
            user_id=created_by_id,
            center_id=school_year.center_id,
            new_values={
                "description": school_year.description,
                "start_date": school_year.start_date.isoformat(),
                "end_date": school_year.end_date.isoformat(),
            },
        )

        if data.is_current:
            await self._make_current(school_year, created_by_id)

        await self.db.commit()
        return school_year

    async def get_school_year(self, school_year_id: int) -> SchoolYear:
        result = await self.db.execute(select(SchoolYear).where(SchoolYear.id == school_year_id))
        school_year = result.scalar_one_or_none()
        if not school_year:
            raise NotFoundError("School year", school_year_id)
        return school_year

    async def list_school_years(self, center_id: int) -> list[SchoolYear]:
        result = await self.db.execute(
            select(SchoolYear)
            .where(SchoolYear.center_id == center_id)
            .order_by(SchoolYear.start_date.desc())
        )
        return list(result.scalars().all())

    async def find_current_school_year(self, center_id: int) -> SchoolYear | None:
        result = await self.db.execute(
            select(SchoolYear).where(
                SchoolYear.center_id == center_id,
                SchoolYear.is_current.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def get_current_school_year(self, center_id: int) -> SchoolYear:
        school_year = await self.find_current_school_year(center_id)
        if not school_year:
            raise NotFoundError("Current school year for center", center_id)
        return school_year

    async def update_school_year(
        self, school_year_id: int, data: SchoolYearUpdate, updated_by_id: int | None = None
    ) -> SchoolYear:
        school_year = await self.get_school_year(school_year_id)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

        start_date = changes.get("start_date", school_year.start_date)
        end_date = changes.get("end_date", school_year.end_date)
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")

        old_values = {k: str(getattr(school_year, k)) for k in changes}
        for field, value in changes.items():
            setattr(school_year, field, value)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="SchoolYear",
            entity_id=school_year.id,
            user_id=updated_by_id,
            center_id=school_year.center_id,
            old_values=old_values or None,
            new_values={k: str(v) for k, v in changes.items()} or None,
        )
        await self.db.commit()
        return school_year

    async def set_current_school_year(self, school_year_id: int, user_id: int | None = None) -> SchoolYear:
        """Make a school year the center's only current one."""
        result = await self.db.execute(
            select(SchoolYear).where(SchoolYear.id == school_year_id).with_for_update()
        )
        school_year = result.scalar_one_or_none()
        if not school_year:
            raise NotFoundError("School year", school_year_id)

        await self._make_current(school_year, user_id)
        await self.db.commit()
        return school_year

    async def _make_current(self, school_year: SchoolYear, user_id: int | None) -> None:
        previous = await self.db.execute(
            select(SchoolYear.id)
            .where(
                SchoolYear.center_id == school_year.center_id,
                SchoolYear.is_current.is_(True),
            )
            .with_for_update()
        )
        previous_id = previous.scalar_one_or_none()
        if previous_id == school_year.id:
            return

        # Unset first and flush so the partial unique index never sees two
        await self.db.execute(
            update(SchoolYear)
            .where(
                SchoolYear.center_id == school_year.center_id,
                SchoolYear.is_current.is_(True),
            )
            .values(is_current=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
        school_year.is_current = True
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.SET_CURRENT_SCHOOL_YEAR,
            entity_type="SchoolYear",
            entity_id=school_year.id,
            user_id=user_id,
            center_id=school_year.center_id,
            old_values={"current_school_year_id": previous_id},
            new_values={"current_school_year_id": school_year.id},
        )
        logger.info(
            "Center %s current school year: %s -> %s",
            school_year.center_id,
            previous_id,
            school_year.id,
        )
