"""Business logic services."""
from wiowa_api.services.auth_service import AuthService, AuthError
from wiowa_api.services.cleanup_service import CleanupService
from wiowa_api.services.email_service import EmailService
from wiowa_api.services.user_service import UserService, UserServiceError

__all__ = [
    "AuthError",
    "AuthService",
    "CleanupService",
    "EmailService",
    "UserService",
    "UserServiceError",
]
