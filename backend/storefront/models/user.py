"""
User model — Authentication and access control.

Emails are stored lower-cased; uniqueness is enforced by a unique index.
Passwords are hashed with bcrypt and only ever written through set_password().
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.core.database import Base
from storefront.core.security import hash_password, verify_password
from storefront.models.base import utcnow

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class User(Base):
    """Customer or admin account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_CUSTOMER)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    verification_code: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    reset_code: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    reset_code_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def set_password(self, plain_password: str) -> None:
        """Replace the password; the plaintext is hashed immediately."""
        self.password_hash = hash_password(plain_password)

    def check_password(self, plain_password: str) -> bool:
        return verify_password(plain_password, self.password_hash)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
