"""Password hashing utilities using bcrypt."""
from __future__ import annotations

import bcrypt

PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&"
MAX_PASSWORD_BYTES = 72  # bcrypt ignores anything past 72 bytes


class PasswordValidationError(ValueError):
    """Raised when a password fails strength validation."""


def validate_password_strength(password: str, min_length: int = 8) -> None:
    """Validate password complexity requirements.

    The policy requires:
    - Minimum length of ``min_length`` characters (8 by default)
    - At least one lowercase letter
    - At least one uppercase letter
    - At least one digit
    - At least one special character from ``@$!%*?&``

    Raises:
        PasswordValidationError: If any requirement is not met.
    """

    if len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long.")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.")

    if not any(char.islower() for char in password) or not any(char.isupper() for char in password):
        raise PasswordValidationError(
            "Password must include both uppercase and lowercase letters."
        )

    if not any(char.isdigit() for char in password):
        raise PasswordValidationError("Password must include at least one number.")

    if not any(char in PASSWORD_SPECIAL_CHARACTERS for char in password):
        raise PasswordValidationError(
            f"Password must include at least one special character ({PASSWORD_SPECIAL_CHARACTERS})."
        )


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt with the given cost factor."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a stored hash."""
    try:
        password_bytes = password.encode('utf-8')
        hash_bytes = password_hash.encode('utf-8')
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except (ValueError, TypeError, AttributeError):
        return False
