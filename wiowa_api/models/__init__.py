"""Database models."""
from wiowa_api.models.base import UserRole
from wiowa_api.models.user import User
from wiowa_api.models.refresh_token import RefreshToken

__all__ = [
    "RefreshToken",
    "User",
    "UserRole",
]
