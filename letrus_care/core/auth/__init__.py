from letrus_care.core.auth.models import OTPCode, User, UserRole
from letrus_care.core.auth.service import AuthService
from letrus_care.core.auth.jwt import create_access_token, create_refresh_token, decode_token
from letrus_care.core.auth.dependencies import get_current_user, require_roles

__all__ = [
    "OTPCode",
    "User",
    "UserRole",
    "AuthService",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "get_current_user",
    "require_roles",
]
