"""Authentication, token rotation and account lifecycle."""
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wiowa_api.config import get_settings
from wiowa_api.models.refresh_token import RefreshToken
from wiowa_api.models.user import User
from wiowa_api.services.email_service import EmailService
from wiowa_api.services.user_service import UserService
from wiowa_api.utils.exceptions import WiowaException
from wiowa_api.utils.tokens import (
    ExpiredSignatureError,
    InvalidTokenError,
    decode_jwt,
    encode_jwt,
    generate_one_time_token,
    generate_refresh_token_value,
)

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If the email exists, a password reset link has been sent"
REGISTER_MESSAGE = "Registration successful. Please check your email to verify your account."
LOGOUT_MESSAGE = "Logged out successfully"
VERIFY_EMAIL_MESSAGE = "Email verified successfully"
RESET_PASSWORD_MESSAGE = "Password reset successful. Please login with your new password"


class AuthError(WiowaException):
    """Raised when authentication fails."""


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AccountDeactivatedError(AuthError):
    def __init__(self, message: str = "Account is deactivated"):
        super().__init__(message)


class EmailNotVerifiedError(AuthError):
    def __init__(self, message: str = "Please verify your email first"):
        super().__init__(message)


class InvalidRefreshTokenError(AuthError):
    def __init__(self, message: str = "Invalid refresh token"):
        super().__init__(message)


class TokenReuseDetectedError(InvalidRefreshTokenError):
    """A rotated (revoked) refresh token was presented again."""

    def __init__(
        self,
        message: str = "Token reuse detected. All sessions have been invalidated. Please login again.",
    ):
        super().__init__(message)


class RefreshTokenExpiredError(AuthError):
    def __init__(self, message: str = "Refresh token expired"):
        super().__init__(message)


class InvalidAccessTokenError(AuthError):
    """Raised when a bearer access token cannot be trusted."""


class AccountTokenError(WiowaException):
    """Raised for unknown or expired verification/reset tokens."""


class AuthService:
    """Service responsible for credentials, JWT issuance and refresh token rotation."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        user_service: UserService | None = None,
        email_service: EmailService | None = None,
    ):
        self.db = db
        self.settings = get_settings()
        self.user_service = user_service or UserService(db)
        self.email_service = email_service or EmailService()

    # ------------------------------------------------------------------
    # Registration and account lifecycle
    # ------------------------------------------------------------------
    async def register(
        self,
        email: str,
        password: str,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create an account and send its email verification link."""
        user = await self.user_service.create_user(
            email, password, first_name=first_name, last_name=last_name
        )

        token = generate_one_time_token()
        expires_at = datetime.now(UTC) + timedelta(hours=self.settings.email_verification_token_hours)
        await self.user_service.set_email_verification_token(user, token, expires_at)
        await self.email_service.send_verification_email(user.email, token)

        logger.info(f"Registered user {user.user_id}")
        return user

    async def verify_email(self, token: str) -> User:
        """Mark the owner of ``token`` as verified; tokens are single-use."""
        user = await self.user_service.get_user_by_verification_token(token)
        if not user:
            raise AccountTokenError("Invalid verification token")
        if user.verification_token_expired():
            raise AccountTokenError("Verification token has expired")

        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Verified email for user {user.user_id}")
        return user

    async def forgot_password(self, email: str) -> str:
        """Store a reset token when the account exists; the reply never reveals whether it does."""
        user = await self.user_service.get_user_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return FORGOT_PASSWORD_MESSAGE

        token = generate_one_time_token()
        expires_at = datetime.now(UTC) + timedelta(hours=self.settings.password_reset_token_hours)
        await self.user_service.set_password_reset_token(user, token, expires_at)
        await self.email_service.send_password_reset_email(user.email, token)

        logger.info(f"Password reset token issued for user {user.user_id}")
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: str, new_password: str) -> User:
        """Set a new password and sign the user out everywhere."""
        user = await self.user_service.get_user_by_reset_token(token)
        if not user:
            raise AccountTokenError("Invalid reset token")
        if user.reset_token_expired():
            raise AccountTokenError("Reset token has expired")

        await self.user_service.update_password(user, new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        await self.db.commit()

        revoked = await self.revoke_all_refresh_tokens(user.user_id)
        logger.info(f"Password reset for user {user.user_id}; revoked {revoked} refresh tokens")
        await self.db.refresh(user)
        return user

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    async def authenticate_user(self, email: str, password: str) -> User:
        """Check credentials and account state before login."""
        user = await self.user_service.verify_credentials(email, password)
        if not user:
            logger.warning("Failed login attempt with invalid credentials")
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.warning(f"Login attempt for deactivated user {user.user_id}")
            raise AccountDeactivatedError()
        if self.settings.require_verified_email and not user.is_email_verified:
            raise EmailNotVerifiedError()
        return user

    async def login(self, user: User, client_ip: str) -> tuple[str, str, int]:
        """Record the login and issue an access/refresh token pair."""
        await self.user_service.update_last_login(user)
        return await self.issue_tokens(user, client_ip)

    async def issue_tokens(self, user: User, client_ip: str) -> tuple[str, str, int]:
        access_token, expires_in = self.create_access_token(user)
        refresh_token = await self.issue_refresh_token(user, client_ip)
        return access_token, refresh_token.token, expires_in

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------
    def _access_token_payload(self, user: User) -> dict[str, Any]:
        now = datetime.now(UTC)
        expire = now + self.settings.access_token_lifetime
        return {
            "sub": str(user.user_id),
            "email": user.email,
            "role": user.role,
            "type": "access",
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }

    def create_access_token(self, user: User) -> tuple[str, int]:
        payload = self._access_token_payload(user)
        token = encode_jwt(payload, self.settings.secret_key, algorithm=self.settings.jwt_algorithm)
        expires_in = int(self.settings.access_token_lifetime.total_seconds())
        return token, expires_in

    def decode_access_token(self, token: str) -> dict[str, Any]:
        try:
            payload = decode_jwt(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
        except ExpiredSignatureError as exc:
            raise InvalidAccessTokenError("token_expired") from exc
        except InvalidTokenError as exc:
            raise InvalidAccessTokenError("invalid_token") from exc

        if payload.get("type") != "access":
            raise InvalidAccessTokenError("invalid_token")
        return payload

    async def get_user_from_access_token(self, token: str) -> User:
        payload = self.decode_access_token(token)
        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError as exc:
            raise InvalidAccessTokenError("invalid_token") from exc

        user = await self.user_service.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise InvalidAccessTokenError("invalid_token")
        return user

    async def _get_refresh_token(self, raw_token: str) -> RefreshToken | None:
        if not raw_token:
            return None
        result = await self.db.execute(
            select(RefreshToken)
            .where(RefreshToken.token == raw_token)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _new_refresh_token(self, user: User, client_ip: str) -> RefreshToken:
        refresh_token = RefreshToken(
            token=generate_refresh_token_value(),
            user_id=user.user_id,
            expires_at=datetime.now(UTC) + self.settings.refresh_token_lifetime,
            is_revoked=False,
            created_by_ip=client_ip,
        )
        self.db.add(refresh_token)
        return refresh_token

    async def _delete_expired_tokens(self, user_id: UUID) -> int:
        result = await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .where(RefreshToken.expires_at < datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        rowcount = result.rowcount
        return rowcount if rowcount and rowcount > 0 else 0

    async def issue_refresh_token(self, user: User, client_ip: str) -> RefreshToken:
        """Persist a new refresh token, then prune the user's expired rows."""
        refresh_token = self._new_refresh_token(user, client_ip)
        await self.db.commit()

        try:
            deleted = await self._delete_expired_tokens(user.user_id)
            await self.db.commit()
            if deleted:
                logger.debug(f"Removed {deleted} expired refresh tokens for user {user.user_id}")
        except Exception as exc:  # best effort, the new token is already stored
            await self.db.rollback()
            logger.warning(f"Expired refresh token cleanup failed for user {user.user_id}: {exc}")

        return refresh_token

    async def revoke_all_refresh_tokens(self, user_id: UUID) -> int:
        """Revoke every non-revoked refresh token for the user and return how many."""
        result = await self.db.execute(
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .where(RefreshToken.is_revoked.is_(False))
            .execution_options(populate_existing=True)
        )
        tokens = result.scalars().all()
        now = datetime.now(UTC)
        for token in tokens:
            token.is_revoked = True
            token.revoked_at = now
        await self.db.commit()
        return len(tokens)

    async def rotate_refresh_token(self, raw_token: str, client_ip: str) -> tuple[User, str, str, int]:
        """Exchange an active refresh token for a new token pair.

        Presenting a token that was already revoked is treated as theft: all
        of the owner's sessions are revoked before the error is raised.

        Raises:
            InvalidRefreshTokenError: Unknown token, or another request rotated it first.
            TokenReuseDetectedError: The token had already been revoked.
            RefreshTokenExpiredError: The token expired naturally.
        """
        stored = await self._get_refresh_token(raw_token)
        if not stored:
            raise InvalidRefreshTokenError()

        if not stored.is_active():
            if stored.is_revoked:
                revoked = await self.revoke_all_refresh_tokens(stored.user_id)
                logger.warning(
                    f"Refresh token reuse detected for user {stored.user_id} from {client_ip}; "
                    f"revoked {revoked} active tokens"
                )
                raise TokenReuseDetectedError()
            raise RefreshTokenExpiredError()

        user_id = stored.user_id
        user = await self.user_service.get_user_by_id(user_id)
        if not user:
            raise InvalidRefreshTokenError()

        try:
            new_value = generate_refresh_token_value()
            now = datetime.now(UTC)
            # Only the first concurrent rotation of a token may flip it to revoked
            result = await self.db.execute(
                update(RefreshToken)
                .where(RefreshToken.token == stored.token)
                .where(RefreshToken.is_revoked.is_(False))
                .values(
                    is_revoked=True,
                    revoked_at=now,
                    revoked_by_ip=client_ip,
                    replaced_by_token=new_value,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Rollback expires loaded instances; only plain locals are safe past this point
                await self.db.rollback()
                logger.warning(f"Lost refresh token rotation race for user {user_id}")
                raise InvalidRefreshTokenError()

            self.db.add(
                RefreshToken(
                    token=new_value,
                    user_id=user.user_id,
                    expires_at=now + self.settings.refresh_token_lifetime,
                    is_revoked=False,
                    created_by_ip=client_ip,
                )
            )
            await self._delete_expired_tokens(user.user_id)
            await self.db.commit()
        except AuthError:
            raise
        except Exception:
            await self.db.rollback()
            logger.error("Unexpected error rotating refresh token", exc_info=True)
            raise

        await self.db.refresh(stored)
        access_token, expires_in = self.create_access_token(user)
        return user, access_token, new_value, expires_in

    async def logout(self, raw_token: str | None, client_ip: str) -> str:
        """Revoke the presented token if it exists; always succeeds."""
        stored = await self._get_refresh_token(raw_token) if raw_token else None
        if stored and not stored.is_revoked:
            stored.is_revoked = True
            stored.revoked_at = datetime.now(UTC)
            stored.revoked_by_ip = client_ip
            await self.db.commit()
        return LOGOUT_MESSAGE
