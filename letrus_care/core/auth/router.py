from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from letrus_care.core.auth.dependencies import AdminUser, CurrentUser
from letrus_care.core.auth.otp import LoggingSmsSender, OTPService, SmsSender
from letrus_care.core.auth.schemas import (
    LoginRequest,
    LoginResponse,
    OTPRequestResponse,
    OTPVerifyRequest,
    RefreshRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from letrus_care.core.auth.service import AuthService
from letrus_care.core.database import get_db
from letrus_care.shared.schemas import SuccessResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_sms_sender() -> SmsSender:
    """Override in deployments that deliver real SMS."""
    return LoggingSmsSender()


@router.post("/login", response_model=SuccessResponse[LoginResponse])
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate user and return tokens."""
    user, access_token, refresh_token = await AuthService(db).authenticate(
        username=data.username,
        password=data.password,
    )
    return SuccessResponse(
        data=LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        message="Login successful",
    )


@router.post("/refresh", response_model=SuccessResponse[TokenResponse])
async def refresh_tokens(data: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Refresh access token using refresh token."""
    access_token, refresh_token = await AuthService(db).refresh_tokens(data.refresh_token)
    return SuccessResponse(
        data=TokenResponse(access_token=access_token, refresh_token=refresh_token),
        message="Tokens refreshed",
    )


@router.get("/me", response_model=SuccessResponse[UserResponse])
async def get_current_user_info(current_user: CurrentUser):
    return SuccessResponse(data=UserResponse.model_validate(current_user))


@router.post(
    "/users",
    response_model=SuccessResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: UserCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Create a staff account (admin only)."""
    user = await AuthService(db).create_user(
        username=data.username,
        password=data.password,
        full_name=data.full_name,
        role=data.role,
        phone=data.phone,
        center_id=data.center_id,
        created_by_id=current_user.id,
    )
    await db.commit()
    return SuccessResponse(data=UserResponse.model_validate(user), message="User created")


@router.post("/otp/request", response_model=SuccessResponse[OTPRequestResponse])
async def request_otp(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    sender: SmsSender = Depends(get_sms_sender),
):
    """Send a verification code to the current user's phone."""
    otp = await OTPService(db, sender).request_code(current_user)
    return SuccessResponse(
        data=OTPRequestResponse(expires_at=otp.expires_at),
        message="Verification code sent",
    )


@router.post("/otp/verify", response_model=SuccessResponse[None])
async def verify_otp(
    data: OTPVerifyRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    await OTPService(db).verify_code(current_user.id, data.code)
    return SuccessResponse(data=None, message="Code verified")
