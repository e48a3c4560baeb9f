from datetime import datetime

from pydantic import Field

from letrus_care.core.auth.models import UserRole
from letrus_care.shared.schemas import BaseSchema


class LoginRequest(BaseSchema):
    username: str = Field(min_length=1, max_length=100)
    password: str


class TokenResponse(BaseSchema):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseSchema):
    refresh_token: str


class UserCreate(BaseSchema):
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=200)
    role: UserRole = UserRole.SECRETARY
    phone: str | None = Field(None, max_length=50)
    center_id: int | None = None


class UserResponse(BaseSchema):
    id: int
    username: str
    full_name: str
    phone: str | None
    role: str
    center_id: int | None
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime


class LoginResponse(BaseSchema):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class OTPVerifyRequest(BaseSchema):
    code: str = Field(min_length=4, max_length=10, pattern=r"^\d+$")


class OTPRequestResponse(BaseSchema):
    expires_at: datetime
