from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.jwt import decode_token
from letrus_care.core.auth.models import User, UserRole
from letrus_care.core.auth.service import AuthService
from letrus_care.core.database import get_db
from letrus_care.core.exceptions import AuthenticationError, AuthorizationError


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency to get current authenticated user from a Bearer JWT."""
    if not authorization:
        raise AuthenticationError("Authorization header required")

    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    token = authorization.removeprefix("Bearer ")
    payload = decode_token(token, token_type="access")

    user = await AuthService(db).get_user_by_id(int(payload["sub"]))
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory to require specific roles.

    Usage:
        @router.post("/courses")
        async def create_course(user: User = Depends(require_roles(UserRole.ADMIN))):
            ...
    """

    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if not current_user.has_role(*roles):
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(f"Required role: {allowed}")
        return current_user

    return role_checker


def ensure_center_access(user: User, center_id: int) -> None:
    """Users bound to a center may only touch that center's data."""
    if user.center_id is not None and user.center_id != center_id:
        raise AuthorizationError("No access to this center")


# Convenience dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
StaffUser = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.SECRETARY))]
