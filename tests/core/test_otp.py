from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.models import OTPCode, OTPStatus
from letrus_care.core.auth.otp import OTPService
from letrus_care.core.database.base import utcnow
from letrus_care.core.exceptions import AuthenticationError, ValidationError


class CapturingSender:
    """Keeps sent messages instead of delivering them."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    async def send(self, phone: str, message: str) -> None:
        self.messages.append((phone, message))

    @property
    def last_code(self) -> str:
        return self.messages[-1][1].rsplit(" ", 1)[-1]


class TestOTPService:
    async def test_request_and_verify(self, db_session: AsyncSession, admin_user):
        sender = CapturingSender()
        service = OTPService(db_session, sender)

        otp = await service.request_code(admin_user)

        assert sender.messages[0][0] == "+244923000000"
        assert otp.code_hash != sender.last_code
        await service.verify_code(admin_user.id, sender.last_code)

        stored = (await db_session.execute(select(OTPCode))).scalar_one()
        assert stored.status == OTPStatus.USED.value

    async def test_code_is_single_use(self, db_session: AsyncSession, admin_user):
        sender = CapturingSender()
        service = OTPService(db_session, sender)
        await service.request_code(admin_user)
        await service.verify_code(admin_user.id, sender.last_code)

        with pytest.raises(AuthenticationError):
            await service.verify_code(admin_user.id, sender.last_code)

    async def test_new_request_invalidates_previous_code(self, db_session: AsyncSession, admin_user):
        sender = CapturingSender()
        service = OTPService(db_session, sender)
        await service.request_code(admin_user)
        first_code = sender.last_code
        await service.request_code(admin_user)

        if first_code != sender.last_code:
            with pytest.raises(AuthenticationError):
                await service.verify_code(admin_user.id, first_code)
        await service.verify_code(admin_user.id, sender.last_code)

    async def test_expired_code_rejected(self, db_session: AsyncSession, admin_user):
        sender = CapturingSender()
        service = OTPService(db_session, sender)
        otp = await service.request_code(admin_user)
        otp.expires_at = utcnow() - timedelta(minutes=1)
        await db_session.commit()

        with pytest.raises(AuthenticationError):
            await service.verify_code(admin_user.id, sender.last_code)

    async def test_wrong_code_rejected(self, db_session: AsyncSession, admin_user):
        sender = CapturingSender()
        service = OTPService(db_session, sender)
        await service.request_code(admin_user)
        wrong = "000000" if sender.last_code != "000000" else "111111"

        with pytest.raises(AuthenticationError):
            await service.verify_code(admin_user.id, wrong)

    async def test_user_without_phone(self, db_session: AsyncSession, factory):
        user = await factory.user(username="semtelefone", phone=None)

        with pytest.raises(ValidationError):
            await OTPService(db_session, CapturingSender()).request_code(user)
