"""
Client session controller.

Mirrors the server-side account lifecycle as a local state machine:

    unauthenticated ──signup──► awaiting-verification ──verify──► authenticated
    unauthenticated ──login───► authenticated ──logout──► unauthenticated
    unauthenticated ──forgot──► awaiting-password-reset ──reset──► unauthenticated

Logout only discards the local token; the server tracks no sessions.
Pending flow data (user id, email, demonstration codes) is held in memory
only and is lost when the controller is recreated.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from storefront_client.api import ApiError, StorefrontAPI

logger = logging.getLogger(__name__)


class AuthStep(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AWAITING_VERIFICATION = "awaiting-verification"
    AWAITING_PASSWORD_RESET = "awaiting-password-reset"
    AUTHENTICATED = "authenticated"


@dataclass
class UserProfile:
    id: str
    email: str
    name: str
    role: str = "customer"
    is_verified: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(data.get("id", "")),
            email=data["email"],
            name=data["name"],
            role=data.get("role", "customer"),
            is_verified=bool(data.get("is_verified", False)),
        )


@dataclass
class ActionResult:
    """Outcome of a session action; failures carry the server message."""
    success: bool
    message: Optional[str] = None
    role: Optional[str] = None


class SessionController:
    """Holds the signed-in user and drives auth flows through the API."""

    def __init__(self, api: StorefrontAPI):
        self.api = api
        self.user: Optional[UserProfile] = None
        self.step = AuthStep.UNAUTHENTICATED
        self.loading = True
        self._clear_pending()

    def _clear_pending(self) -> None:
        self.pending_user_id: Optional[str] = None
        self.pending_email: Optional[str] = None
        self.pending_verification_code: Optional[str] = None
        self.pending_reset_code: Optional[str] = None

    @property
    def token_store(self):
        return self.api.token_store

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == "admin"

    def _sign_in(self, data: dict[str, Any]) -> UserProfile:
        token = data.get("token")
        if token:
            self.token_store.save(token)
        self.user = UserProfile.from_api(data["user"])
        self.step = AuthStep.AUTHENTICATED
        return self.user

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        """Rehydrate from a stored token; a rejected token is discarded."""
        try:
            if self.token_store.load():
                try:
                    data = await self.api.get_me()
                except ApiError as e:
                    logger.warning("Stored session rejected: %s", e.message)
                    self.token_store.clear()
                    self.user = None
                    self.step = AuthStep.UNAUTHENTICATED
                else:
                    self.user = UserProfile.from_api(data["user"])
                    self.step = AuthStep.AUTHENTICATED
        finally:
            self.loading = False

    async def close(self) -> None:
        """Release the HTTP client; the stored token is kept for the next start()."""
        await self.api.aclose()

    # ── Signup / verification ─────────────────────────────────

    async def signup(self, email: str, name: str, password: str) -> ActionResult:
        try:
            data = await self.api.signup(email, name, password)
        except ApiError as e:
            return ActionResult(False, e.message)

        self.pending_user_id = data.get("user_id")
        self.pending_email = email
        self.pending_verification_code = data.get("verification_code")
        self.step = AuthStep.AWAITING_VERIFICATION
        return ActionResult(True, data.get("message"))

    async def verify_email(self, code: str) -> ActionResult:
        if not self.pending_user_id:
            return ActionResult(False, "No pending verification")
        try:
            data = await self.api.verify_email(self.pending_user_id, code)
        except ApiError as e:
            return ActionResult(False, e.message)

        user = self._sign_in(data)
        self._clear_pending()
        return ActionResult(True, data.get("message"), role=user.role)

    # ── Login / logout ────────────────────────────────────────

    async def login(self, email: str, password: str) -> ActionResult:
        try:
            data = await self.api.login(email, password)
        except ApiError as e:
            return ActionResult(False, e.message)

        user = self._sign_in(data)
        return ActionResult(True, data.get("message"), role=user.role)

    def logout(self) -> None:
        self.token_store.clear()
        self.user = None
        self.step = AuthStep.UNAUTHENTICATED

    # ── Profile ───────────────────────────────────────────────

    async def update_profile(self, name: Optional[str] = None, email: Optional[str] = None) -> None:
        """Update name/email; raises ApiError on failure (e.g. email in use)."""
        if self.user is None:
            return
        data = await self.api.update_profile(
            name=name or self.user.name,
            email=email or self.user.email,
        )
        self.user.name = data["user"]["name"]
        self.user.email = data["user"]["email"]

    # ── Password reset ────────────────────────────────────────

    async def request_password_reset(self, email: str) -> ActionResult:
        try:
            data = await self.api.forgot_password(email)
        except ApiError as e:
            return ActionResult(False, e.message)

        self.pending_user_id = data.get("user_id")
        self.pending_email = email
        self.pending_reset_code = data.get("reset_code")
        self.step = AuthStep.AWAITING_PASSWORD_RESET
        return ActionResult(True, data.get("message"))

    async def reset_password(self, code: str, new_password: str) -> ActionResult:
        if not self.pending_user_id and not self.pending_email:
            return ActionResult(False, "No pending reset request")
        try:
            data = await self.api.reset_password(
                code,
                new_password,
                user_id=self.pending_user_id,
                email=None if self.pending_user_id else self.pending_email,
            )
        except ApiError as e:
            return ActionResult(False, e.message)

        # The user signs in again with the new password
        self.step = AuthStep.UNAUTHENTICATED
        self._clear_pending()
        return ActionResult(True, data.get("message"))
