"""
Authentication API endpoints.

POST /auth/signup          — Create an unverified account, issue verification code
POST /auth/verify-email    — Confirm code, returns session token
POST /auth/login           — Login, returns session token
POST /auth/forgot-password — Issue password reset code (generic answer)
POST /auth/reset-password  — Consume reset code, set new password
GET  /auth/me              — Current user profile
PUT  /auth/profile         — Update name / email
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import get_settings
from storefront.core.database import get_db
from storefront.core.notifications import CodeNotifier, get_notifier
from storefront.core.security import get_current_user
from storefront.models.user import User
from storefront.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UpdateProfileRequest,
    UserEnvelope,
    UserResponse,
    VerifyEmailRequest,
)
from storefront.services.auth_service import GENERIC_RESET_MESSAGE, AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    notifier: CodeNotifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(db, notifier, get_settings())


def _user_to_response(user: User) -> UserResponse:
    """Map User ORM model to UserResponse schema."""
    return UserResponse(
        id=str(user.id),
        email=user.email,
        name=user.name,
        role=user.role,
        is_verified=user.is_verified,
        created_at=user.created_at,
    )


@router.post(
    "/signup",
    response_model=SignupResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def signup(body: SignupRequest, auth: AuthService = Depends(get_auth_service)):
    """Register a new customer account (unverified)."""
    result = await auth.signup(body.email, body.name, body.password)
    return SignupResponse(
        message="User created successfully. Please verify your email.",
        user_id=str(result.user.id),
        verification_code=result.verification_code,
    )


@router.post("/verify-email", response_model=TokenResponse)
async def verify_email(body: VerifyEmailRequest, auth: AuthService = Depends(get_auth_service)):
    """Confirm the signup code and start a session."""
    result = await auth.verify_email(body.user_id, body.code)
    return TokenResponse(
        message="Email verified successfully",
        token=result.token,
        user=_user_to_response(result.user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Authenticate user and return a session token."""
    result = await auth.login(body.email, body.password)
    return TokenResponse(
        message="Login successful",
        token=result.token,
        user=_user_to_response(result.user),
    )


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
async def forgot_password(
    body: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)
):
    """Issue a reset code. The message is the same whether or not the email exists."""
    result = await auth.request_password_reset(body.email)
    response = ForgotPasswordResponse(message=GENERIC_RESET_MESSAGE)
    if result.user is not None and result.reset_code is not None:
        response.user_id = str(result.user.id)
        response.reset_code = result.reset_code
    return response


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """Set a new password with a valid, unexpired reset code."""
    await auth.reset_password(
        code=body.code,
        new_password=body.new_password,
        user_id=body.user_id,
        email=body.email,
    )
    return MessageResponse(message="Password reset successfully")


@router.get("/me", response_model=UserEnvelope)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user profile."""
    return UserEnvelope(user=_user_to_response(current_user))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    """Update display name and/or email."""
    user = await auth.update_profile(current_user, name=body.name, email=body.email)
    return ProfileResponse(
        message="Profile updated successfully",
        user=_user_to_response(user),
    )
