"""Outgoing account emails.

Delivery is not wired to a mail provider: messages are written to the log so
that links can be picked up during development.
"""
import logging

from wiowa_api.config import get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Build account emails and hand them to the log."""

    def __init__(self, frontend_url: str | None = None):
        self.settings = get_settings()
        self.frontend_url = (frontend_url or self.settings.frontend_url).rstrip("/")

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        logger.info(f"Email to {to} | {subject} | {body}")
        return True

    async def send_verification_email(self, to: str, token: str) -> bool:
        link = f"{self.frontend_url}/verify-email?token={token}"
        return await self.send_email(
            to,
            "Verify your email address",
            f"Confirm your account within {self.settings.email_verification_token_hours} hours: {link}",
        )

    async def send_password_reset_email(self, to: str, token: str) -> bool:
        link = f"{self.frontend_url}/reset-password?token={token}"
        return await self.send_email(
            to,
            "Reset your password",
            f"Choose a new password within {self.settings.password_reset_token_hours} hour(s): {link}",
        )
