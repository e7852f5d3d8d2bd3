"""
Domain errors raised by services.

Each error carries the HTTP status it maps to; the handlers registered in
``storefront.main`` render every one of them as ``{"message": ...}``.
"""
from fastapi import status


class StorefrontError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(StorefrontError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class DuplicateEmail(StorefrontError):
    """Email already registered to another user (kept as 400 for client compatibility)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User with this email already exists"


class InvalidCode(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid code"


class CodeExpired(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Reset code has expired"


class InvalidCredentials(StorefrontError):
    """Same message for unknown email and wrong password."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class Unauthorized(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"


class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Admin access required"


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UpstreamFailure(StorefrontError):
    """External collaborator (image host, mail server) failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Upstream service failed"
