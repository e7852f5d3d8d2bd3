"""Pydantic schemas for authentication and profile management."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


# ── Auth Requests ─────────────────────────────────────────────────

class SignupRequest(BaseModel):
    """Registration request."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)


class VerifyEmailRequest(BaseModel):
    """Confirm the code issued at signup."""
    user_id: str
    code: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Login request."""
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """
    Consume a reset code.

    user_id identifies the account in demonstration mode (it is returned by
    forgot-password); email works for out-of-band delivery.
    """
    user_id: Optional[str] = None
    email: Optional[EmailStr] = None
    code: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)

    @model_validator(mode="after")
    def _require_account(self):
        if not self.user_id and not self.email:
            raise ValueError("user_id or email is required")
        return self


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None


# ── Responses ─────────────────────────────────────────────────────

class UserResponse(BaseModel):
    """User profile in API responses (never includes hash or codes)."""
    id: str  # UUID as string
    email: str
    name: str
    role: Literal["customer", "admin"]
    is_verified: bool
    created_at: Optional[datetime] = None


class UserEnvelope(BaseModel):
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class SignupResponse(BaseModel):
    message: str
    user_id: str
    verification_code: Optional[str] = None  # demonstration delivery only


class TokenResponse(BaseModel):
    """Session token issued after verify-email or login."""
    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse


class ForgotPasswordResponse(BaseModel):
    message: str
    user_id: Optional[str] = None     # demonstration delivery only
    reset_code: Optional[str] = None  # demonstration delivery only


class ProfileResponse(BaseModel):
    message: str
    user: UserResponse
