"""Authentication schema definitions."""
from typing import Optional

from pydantic import BaseModel, constr, field_validator

from wiowa_api.config import get_settings
from wiowa_api.schemas.user import EmailLike, NameStr, UserSummary
from wiowa_api.utils.passwords import validate_password_strength

PasswordStr = constr(min_length=1, max_length=128)
TokenStr = constr(min_length=1, max_length=255)


def _check_password_policy(value: str) -> str:
    # PasswordValidationError is a ValueError, so pydantic reports it as a 422
    validate_password_strength(value, get_settings().password_min_length)
    return value


class RegisterRequest(BaseModel):
    """Payload for creating a new account."""

    email: EmailLike
    password: PasswordStr
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password_policy(value)


class RegisterResponse(BaseModel):
    message: str
    user: UserSummary


class LoginRequest(BaseModel):
    """Login payload."""

    email: EmailLike
    password: PasswordStr


class AuthTokenResponse(BaseModel):
    """Standard response containing JWT credentials."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummary


class RefreshRequest(BaseModel):
    """Refresh payload (optional when using cookies)."""

    refresh_token: Optional[str] = None


class LogoutRequest(BaseModel):
    """Logout payload; the cookie is used when the body omits the token."""

    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailLike


class ResetPasswordRequest(BaseModel):
    token: TokenStr
    new_password: PasswordStr

    @field_validator("new_password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _check_password_policy(value)
