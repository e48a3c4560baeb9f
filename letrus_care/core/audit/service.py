from enum import StrEnum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit.models import AuditLog


class AuditAction(StrEnum):
    """Audit actions recorded by the services."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DEACTIVATE = "DEACTIVATE"
    LOGIN = "LOGIN"
    OTP_VERIFIED = "OTP_VERIFIED"

    REPLACE_TUITION_FEE = "REPLACE_TUITION_FEE"
    SET_CURRENT_SCHOOL_YEAR = "SET_CURRENT_SCHOOL_YEAR"
    GENERATE_FINANCIAL_PLAN = "GENERATE_FINANCIAL_PLAN"
    RECORD_PAYMENT = "RECORD_PAYMENT"
    MATERIALIZE_PLAN_ENTRY = "MATERIALIZE_PLAN_ENTRY"


class AuditService:
    """Writes audit rows inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str | AuditAction,
        entity_type: str,
        entity_id: int,
        user_id: int | None = None,
        center_id: int | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        comment: str | None = None,
    ) -> AuditLog:
        """Create an audit log entry (flushed, not committed)."""
        audit_log = AuditLog(
            user_id=user_id,
            center_id=center_id,
            action=str(action),
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=old_values,
            new_values=new_values,
            comment=comment,
        )
        self.db.add(audit_log)
        await self.db.flush()
        return audit_log

    async def list_for_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        """History of one entity, oldest first."""
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.created_at, AuditLog.id)
        )
        return list(result.scalars().all())
