from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.audit import AuditAction, AuditService
from letrus_care.core.auth.jwt import create_access_token, create_refresh_token, decode_token
from letrus_care.core.auth.models import User, UserRole
from letrus_care.core.auth.password import hash_password, verify_password
from letrus_care.core.database.base import utcnow
from letrus_care.core.exceptions import AuthenticationError, DuplicateError


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def get_user_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        username: str,
        password: str,
        full_name: str,
        role: UserRole,
        phone: str | None = None,
        center_id: int | None = None,
        created_by_id: int | None = None,
    ) -> User:
        """Create a new user. Usernames are stored lower-cased."""
        username = username.strip().lower()
        if await self.get_user_by_username(username):
            raise DuplicateError("User", "username", username)

        user = User(
            username=username,
            password_hash=hash_password(password),
            full_name=full_name,
            phone=phone,
            role=role.value,
            center_id=center_id,
            is_active=True,
        )
        self.session.add(user)
        await self.session.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="User",
            entity_id=user.id,
            user_id=created_by_id,
            center_id=center_id,
            new_values={"username": user.username, "role": user.role},
        )
        return user

    async def authenticate(self, username: str, password: str) -> tuple[User, str, str]:
        """
        Authenticate user and return tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)

        Raises:
            AuthenticationError: If credentials are invalid
        """
        user = await self.get_user_by_username(username)

        # Same message for unknown user and wrong password
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        user.last_login_at = utcnow()
        await self.session.flush()

        access_token = create_access_token(user.id, user.role, user.center_id)
        refresh_token = create_refresh_token(user.id)

        await self.audit.log(
            action=AuditAction.LOGIN,
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            center_id=user.center_id,
        )
        return user, access_token, refresh_token

    async def refresh_tokens(self, refresh_token: str) -> tuple[str, str]:
        """Issue a new (access, refresh) pair from a valid refresh token."""
        payload = decode_token(refresh_token, token_type="refresh")

        user = await self.get_user_by_id(int(payload["sub"]))
        if not user:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        return (
            create_access_token(user.id, user.role, user.center_id),
            create_refresh_token(user.id),
        )
