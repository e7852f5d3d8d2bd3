"""
Auth Service — signup/verify, login, password reset and profile updates.

Flow:
    signup ─► (verification code issued) ─► verify_email ─► token
    login ─► token
    request_password_reset ─► (reset code, 1h) ─► reset_password

Codes are delivered through a CodeNotifier; in demonstration mode the
notifier exposes codes and they are also returned to the caller.

Email uniqueness is checked before writes and backed by the unique index on
users.email. The pre-check alone is not race-free: two concurrent signups with
the same address both pass it and the slower insert fails on the index, which
is reported as DuplicateEmail as well.
"""
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings
from storefront.core.exceptions import (
    CodeExpired,
    DuplicateEmail,
    InvalidCode,
    InvalidCredentials,
    NotFound,
)
from storefront.core.notifications import (
    PURPOSE_PASSWORD_RESET,
    PURPOSE_VERIFICATION,
    CodeNotifier,
)
from storefront.core.security import create_user_token
from storefront.models.base import as_utc, utcnow
from storefront.models.user import ROLE_CUSTOMER, User, normalize_email

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If the email exists, a reset code has been sent."


def generate_numeric_code(length: int = 6) -> str:
    """Random numeric code without a leading zero (100000-999999 for length 6)."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def _codes_match(stored: Optional[str], submitted: str) -> bool:
    """Constant-time comparison; bytes so non-ASCII input is just a mismatch."""
    if stored is None:
        return False
    return secrets.compare_digest(stored.encode("utf-8"), submitted.encode("utf-8"))


def parse_user_id(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


@dataclass
class SignupResult:
    user: User
    verification_code: Optional[str]


@dataclass
class SessionResult:
    user: User
    token: str


@dataclass
class ResetRequestResult:
    user: Optional[User]
    reset_code: Optional[str]


class AuthService:
    """Account lifecycle operations over the users table."""

    def __init__(self, db: AsyncSession, notifier: CodeNotifier, settings: Settings):
        self.db = db
        self.notifier = notifier
        self.settings = settings

    # ── Lookups ───────────────────────────────────────────────────

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> User:
        uid = parse_user_id(user_id)
        user = await self.db.get(User, uid) if uid else None
        if user is None:
            raise NotFound("User not found")
        return user

    def _exposed(self, code: str) -> Optional[str]:
        return code if self.notifier.exposes_codes else None

    async def _commit_unique_email(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateEmail()

    # ── Signup / verification ─────────────────────────────────────

    async def signup(self, email: str, name: str, password: str) -> SignupResult:
        """Create an unverified customer and issue a verification code."""
        email = normalize_email(email)
        if await self.get_by_email(email):
            logger.info("Signup rejected, email already registered: %s", email)
            raise DuplicateEmail()

        code = generate_numeric_code(self.settings.verification_code_length)
        user = User(
            email=email,
            name=name.strip(),
            role=ROLE_CUSTOMER,
            is_verified=False,
            verification_code=code,
        )
        user.set_password(password)
        self.db.add(user)
        await self._commit_unique_email()
        logger.info("User created: %s", email)

        await self.notifier.send_code(email, code, PURPOSE_VERIFICATION)
        return SignupResult(user=user, verification_code=self._exposed(code))

    async def verify_email(self, user_id: str, code: str) -> SessionResult:
        """Confirm the signup code; on success the user is verified and gets a token."""
        user = await self.get_by_id(user_id)
        if not _codes_match(user.verification_code, code):
            logger.warning("Invalid verification code for %s", user.email)
            raise InvalidCode("Invalid verification code")

        user.is_verified = True
        user.verification_code = None
        await self.db.commit()
        logger.info("Email verified: %s", user.email)
        return SessionResult(user=user, token=create_user_token(user))

    # ── Login ─────────────────────────────────────────────────────

    async def login(self, email: str, password: str) -> SessionResult:
        user = await self.get_by_email(email)
        if user is None or not user.check_password(password):
            logger.info("Failed login for %s", normalize_email(email))
            raise InvalidCredentials()

        logger.info("Login successful: %s", user.email)
        return SessionResult(user=user, token=create_user_token(user))

    # ── Password reset ────────────────────────────────────────────

    async def request_password_reset(self, email: str) -> ResetRequestResult:
        """
        Issue a reset code valid for RESET_CODE_TTL_MINUTES.

        Unknown emails are not an error: the caller always answers with the
        same generic message.
        """
        user = await self.get_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return ResetRequestResult(user=None, reset_code=None)

        code = generate_numeric_code(self.settings.verification_code_length)
        user.reset_code = code
        user.reset_code_expires_at = utcnow() + timedelta(
            minutes=self.settings.reset_code_ttl_minutes
        )
        await self.db.commit()
        logger.info("Reset code generated for %s", user.email)

        await self.notifier.send_code(user.email, code, PURPOSE_PASSWORD_RESET)
        return ResetRequestResult(user=user, reset_code=self._exposed(code))

    async def reset_password(
        self,
        code: str,
        new_password: str,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
    ) -> None:
        if user_id:
            user = await self.get_by_id(user_id)
        else:
            user = await self.get_by_email(email or "")
            if user is None:
                raise NotFound("User not found")

        if not _codes_match(user.reset_code, code):
            logger.warning("Invalid reset code for %s", user.email)
            raise InvalidCode("Invalid reset code")

        expires_at = as_utc(user.reset_code_expires_at)
        if expires_at is None or utcnow() > expires_at:
            logger.warning("Reset code expired for %s", user.email)
            raise CodeExpired()

        user.set_password(new_password)
        user.reset_code = None
        user.reset_code_expires_at = None
        await self.db.commit()
        logger.info("Password reset for %s", user.email)

    # ── Profile ───────────────────────────────────────────────────

    async def update_profile(
        self, user: User, name: Optional[str] = None, email: Optional[str] = None
    ) -> User:
        if email is not None:
            email = normalize_email(email)
            if email != user.email:
                existing = await self.get_by_email(email)
                if existing is not None and existing.id != user.id:
                    logger.info("Profile update rejected, email in use: %s", email)
                    raise DuplicateEmail("Email already in use")
                user.email = email

        if name:
            user.name = name.strip()

        await self._commit_unique_email()
        logger.info("Profile updated for %s", user.email)
        return user
