"""One-time codes for phone verification. Delivery is delegated to an SmsSender."""

import hashlib
import hmac
import logging
import secrets
from datetime import timedelta, timezone
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.auth.models import OTPCode, OTPStatus, User
from letrus_care.core.config import settings
from letrus_care.core.database.base import utcnow
from letrus_care.core.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


class SmsSender(Protocol):
    async def send(self, phone: str, message: str) -> None: ...


class LoggingSmsSender:
    """Default sender: writes a masked line to the log instead of sending an SMS."""

    async def send(self, phone: str, message: str) -> None:
        logger.info("SMS to ***%s: %d chars", phone[-3:], len(message))


def _hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


class OTPService:
    def __init__(self, db: AsyncSession, sender: SmsSender | None = None):
        self.db = db
        self.sender = sender or LoggingSmsSender()
        self.audit = AuditService(db)

    def generate_code(self) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(settings.otp_length))

    async def request_code(self, user: User) -> OTPCode:
        """Invalidate earlier pending codes, store a new one and send it."""
        if not user.phone:
            raise ValidationError("User has no phone number", field="phone")

        await self.db.execute(
            update(OTPCode)
            .where(OTPCode.user_id == user.id, OTPCode.status == OTPStatus.PENDING.value)
            .values(status=OTPStatus.USED.value)
        )

        code = self.generate_code()
        otp = OTPCode(
            user_id=user.id,
            code_hash=_hash_code(code),
            status=OTPStatus.PENDING.value,
            expires_at=utcnow() + timedelta(minutes=settings.otp_expire_minutes),
        )
        self.db.add(otp)
        await self.db.flush()
        await self.db.commit()

        await self.sender.send(user.phone, f"Your Letrus Care code: {code}")
        return otp

    async def verify_code(self, user_id: int, code: str) -> None:
        """Accept a pending, unexpired matching code exactly once."""
        result = await self.db.execute(
            select(OTPCode)
            .where(OTPCode.user_id == user_id, OTPCode.status == OTPStatus.PENDING.value)
            .order_by(OTPCode.id.desc())
            .limit(1)
            .with_for_update()
        )
        otp = result.scalar_one_or_none()
        if otp is None:
            raise AuthenticationError("Invalid or expired code")

        expires_at = otp.expires_at
        if expires_at.tzinfo is None:
            # SQLite returns naive values; they were stored as UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at < utcnow():
            raise AuthenticationError("Invalid or expired code")

        if not hmac.compare_digest(otp.code_hash, _hash_code(code.strip())):
            raise AuthenticationError("Invalid or expired code")

        otp.status = OTPStatus.USED.value
        await self.audit.log(
            action=AuditAction.OTP_VERIFIED,
            entity_type="User",
            entity_id=user_id,
            user_id=user_id,
        )
        await self.db.commit()
