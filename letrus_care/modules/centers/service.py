"""Service for Centers module."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.exceptions import DuplicateError, NotFoundError
from letrus_care.modules.centers.models import Center
from letrus_care.modules.centers.schemas import CenterCreate


class CenterService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_center(self, data: CenterCreate, created_by_id: int | None = None) -> Center:
        existing = await self.db.execute(select(Center).where(Center.name == data.name))
        if existing.scalar_one_or_none():
            raise DuplicateError("Center", "name", data.name)

        center = Center(name=data.name, nif=data.nif, phone=data.phone, is_active=True)
        self.db.add(center)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Center",
            entity_id=center.id,
            user_id=created_by_id,
            center_id=center.id,
            new_values={"name": center.name},
        )
        await self.db.commit()
        return center

    async def get_center(self, center_id: int) -> Center:
        result = await self.db.execute(select(Center).where(Center.id == center_id))
        center = result.scalar_one_or_none()
        if not center:
            raise NotFoundError("Center", center_id)
        return center

    async def list_centers(self) -> list[Center]:
        result = await self.db.execute(select(Center).order_by(Center.name))
        return list(result.scalars().all())
