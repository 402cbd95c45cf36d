"""User schema definitions."""
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, constr

from wiowa_api.models.base import UserRole
from wiowa_api.schemas.base import ORMResponse, UTCDateTime

EmailLike = constr(pattern=r"[^@\s]+@[^@\s]+\.[^@\s]+", min_length=5, max_length=255)
NameStr = constr(min_length=1, max_length=100)


class UserSummary(ORMResponse):
    """Public part of a user returned alongside tokens."""

    user_id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole


class UserResponse(ORMResponse):
    """Full profile, without password or token fields."""

    user_id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole
    is_email_verified: bool
    is_active: bool
    last_login_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class UserUpdateRequest(BaseModel):
    """Admin profile update; password changes go through the reset flow."""

    email: Optional[EmailLike] = None
    first_name: Optional[NameStr] = None
    last_name: Optional[NameStr] = None
    is_active: Optional[bool] = None
    is_email_verified: Optional[bool] = None


class UserRoleUpdateRequest(BaseModel):
    role: UserRole
