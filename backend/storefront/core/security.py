"""
Security utilities — JWT tokens and password hashing.

Uses:
  - bcrypt for password hashing (direct, no passlib)
  - python-jose for JWT token creation/verification

Tokens are stateless: validity is signature + expiry only. There is no
server-side session list, so logout is purely a client-side discard.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import get_settings
from storefront.core.database import get_db
from storefront.core.exceptions import Forbidden, Unauthorized

# ── OAuth2 scheme ─────────────────────────────────────────────────
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

# ── JWT config ────────────────────────────────────────────────────
ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": TOKEN_TYPE_ACCESS})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_user_token(user) -> str:
    """Issue a session token bound to the user's id and role."""
    return create_access_token({"sub": str(user.id), "role": user.role})


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token (signature and expiry)."""
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")

    if payload.get("type") != TOKEN_TYPE_ACCESS:
        raise Unauthorized("Invalid token type")
    return payload


def token_user_id(token: str) -> uuid.UUID:
    """Extract the user id bound to a token."""
    payload = decode_token(token)
    user_id_str = payload.get("sub")
    if not user_id_str:
        raise Unauthorized("Invalid or expired token")
    try:
        return uuid.UUID(user_id_str)
    except ValueError:
        raise Unauthorized("Invalid or expired token")


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
):
    """
    FastAPI dependency — extract current user from the bearer token.
    """
    from storefront.models.user import User

    if token is None:
        raise Unauthorized("Access token required")

    user = await db.get(User, token_user_id(token))
    if user is None:
        raise Unauthorized("User not found")

    return user


async def require_admin(current_user=Depends(get_current_user)):
    """FastAPI dependency — current user must hold the admin role."""
    if not current_user.is_admin:
        raise Forbidden("Admin access required")
    return current_user
