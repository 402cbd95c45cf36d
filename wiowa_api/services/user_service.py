"""User account management."""
import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wiowa_api.config import get_settings
from wiowa_api.models.base import UserRole
from wiowa_api.models.refresh_token import RefreshToken
from wiowa_api.models.user import User
from wiowa_api.utils.exceptions import WiowaException
from wiowa_api.utils.passwords import hash_password, validate_password_strength, verify_password

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("email", "first_name", "last_name", "is_active", "is_email_verified")


class UserServiceError(WiowaException):
    """Raised when a user account operation fails."""


class UserNotFoundError(UserServiceError):
    """Raised when no user exists for the requested id."""


class EmailAlreadyExistsError(UserServiceError):
    """Raised when an email address is already registered."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Create, look up and administer user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def get_user_by_id(self, user_id: UUID | str) -> User | None:
        if not isinstance(user_id, UUID):
            try:
                user_id = UUID(str(user_id))
            except ValueError:
                return None
        result = await self.db.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: UUID | str) -> User:
        """Return the user or raise ``UserNotFoundError``."""
        user = await self.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with ID {user_id} not found")
        return user

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def create_user(
        self,
        email: str,
        password: str,
        *,
        first_name: str | None = None,
        last_name: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create a new user with a bcrypt-hashed password.

        Raises:
            EmailAlreadyExistsError: If the email is already registered.
            PasswordValidationError: If the password fails the strength policy.
        """
        email = normalize_email(email)
        if await self.get_user_by_email(email):
            raise EmailAlreadyExistsError("User with this email already exists")

        validate_password_strength(password, self.settings.password_min_length)

        user = User(
            email=email,
            password_hash=hash_password(password, rounds=self.settings.bcrypt_rounds),
            first_name=first_name,
            last_name=last_name,
            role=role.value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise EmailAlreadyExistsError("User with this email already exists") from exc

        await self.db.refresh(user)
        logger.info(f"Created user {user.user_id}")
        return user

    async def verify_credentials(self, email: str, password: str) -> User | None:
        """Return the user when the password matches, otherwise None."""
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    async def update_user(self, user_id: UUID | str, changes: dict[str, Any]) -> User:
        """Apply profile changes; passwords are changed through the reset flow only.

        Raises:
            UserNotFoundError: If the user does not exist.
            EmailAlreadyExistsError: If the new email belongs to another user.
        """
        user = await self.get_user(user_id)

        new_email = changes.get("email")
        if new_email:
            new_email = normalize_email(new_email)
            if new_email != user.email and await self.get_user_by_email(new_email):
                raise EmailAlreadyExistsError("Email already in use")
            changes = {**changes, "email": new_email}

        for field, value in changes.items():
            if field in UPDATABLE_FIELDS and value is not None:
                setattr(user, field, value)

        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise EmailAlreadyExistsError("Email already in use") from exc

        await self.db.refresh(user)
        return user

    async def update_role(self, user_id: UUID | str, role: UserRole) -> User:
        user = await self.get_user(user_id)
        user.role = role.value
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Changed role of user {user.user_id} to {role.value}")
        return user

    async def remove_user(self, user_id: UUID | str) -> None:
        """Delete the user together with their refresh tokens."""
        user = await self.get_user(user_id)
        await self.db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user.user_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"Removed user {user.user_id}")

    async def update_last_login(self, user: User) -> None:
        user.last_login_at = datetime.now(UTC)
        await self.db.commit()

    async def set_email_verification_token(self, user: User, token: str, expires_at: datetime) -> None:
        """Store a verification token, replacing any outstanding one."""
        user.email_verification_token = token
        user.email_verification_expires = expires_at
        await self.db.commit()

    async def set_password_reset_token(self, user: User, token: str, expires_at: datetime) -> None:
        """Store a reset token, replacing any outstanding one."""
        user.password_reset_token = token
        user.password_reset_expires = expires_at
        await self.db.commit()

    async def get_user_by_verification_token(self, token: str) -> User | None:
        if not token:
            return None
        result = await self.db.execute(select(User).where(User.email_verification_token == token))
        return result.scalar_one_or_none()

    async def get_user_by_reset_token(self, token: str) -> User | None:
        if not token:
            return None
        result = await self.db.execute(select(User).where(User.password_reset_token == token))
        return result.scalar_one_or_none()

    async def update_password(self, user: User, new_password: str) -> User:
        """Hash and store a new password without committing."""
        validate_password_strength(new_password, self.settings.password_min_length)
        user.password_hash = hash_password(new_password, rounds=self.settings.bcrypt_rounds)
        return user
