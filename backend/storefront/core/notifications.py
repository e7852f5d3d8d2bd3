"""
Delivery of verification and password-reset codes.

CODE_DELIVERY selects the implementation:
  - response: demonstration mode, the code is handed back in the API response
  - log:      the code is only written to the application log
  - smtp:     the code is mailed to the user
"""
import asyncio
import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from functools import lru_cache

from storefront.config import Settings, get_settings
from storefront.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

PURPOSE_VERIFICATION = "verification"
PURPOSE_PASSWORD_RESET = "password_reset"

_SUBJECTS = {
    PURPOSE_VERIFICATION: "Verify your email",
    PURPOSE_PASSWORD_RESET: "Your password reset code",
}


class CodeNotifier(ABC):
    """Sends a one-time code to a destination (an email address)."""

    # When True, services include the code in their API responses.
    exposes_codes: bool = False

    @abstractmethod
    async def send_code(self, destination: str, code: str, purpose: str) -> None:
        ...


class ResponseCodeNotifier(CodeNotifier):
    """Demonstration delivery: nothing is sent, the API response carries the code."""

    exposes_codes = True

    async def send_code(self, destination: str, code: str, purpose: str) -> None:
        logger.info("Issued %s code for %s (returned in response)", purpose, destination)


class LogCodeNotifier(CodeNotifier):
    """Writes the code to the log; useful for local development."""

    async def send_code(self, destination: str, code: str, purpose: str) -> None:
        logger.info("%s code for %s: %s", purpose, destination, code)


class SmtpCodeNotifier(CodeNotifier):
    """Mails the code through an SMTP server (STARTTLS)."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.sender = settings.sender_email or settings.smtp_username

    def _build_message(self, destination: str, code: str, purpose: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = _SUBJECTS.get(purpose, "Your code")
        msg["From"] = self.sender
        msg["To"] = destination
        msg.set_content(f"Your code is {code}.")
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port) as smtp:
            smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)

    async def send_code(self, destination: str, code: str, purpose: str) -> None:
        msg = self._build_message(destination, code, purpose)
        try:
            await asyncio.to_thread(self._send, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", destination, e)
            raise UpstreamFailure("Could not send code")
        logger.info("Sent %s code to %s", purpose, destination)


def build_notifier(settings: Settings) -> CodeNotifier:
    if settings.code_delivery == "smtp":
        return SmtpCodeNotifier(settings)
    if settings.code_delivery == "log":
        return LogCodeNotifier()
    return ResponseCodeNotifier()


@lru_cache
def get_notifier() -> CodeNotifier:
    """FastAPI dependency — configured code notifier."""
    return build_notifier(get_settings())
