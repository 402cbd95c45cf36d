"""Token generation and JWT helpers built on PyJWT."""
import secrets
from typing import Any

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

REFRESH_TOKEN_BYTES = 64
ONE_TIME_TOKEN_BYTES = 32

__all__ = [
    "ExpiredSignatureError",
    "InvalidTokenError",
    "decode_jwt",
    "encode_jwt",
    "generate_one_time_token",
    "generate_refresh_token_value",
]


def generate_refresh_token_value() -> str:
    """Return an opaque 128-character hex refresh token."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def generate_one_time_token() -> str:
    """Return a token for email verification or password reset links."""
    return secrets.token_hex(ONE_TIME_TOKEN_BYTES)


def encode_jwt(payload: dict[str, Any], secret: str, algorithm: str = "HS256") -> str:
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_jwt(token: str, secret: str, algorithms: list[str]) -> dict[str, Any]:
    """Decode and verify a JWT.

    Raises:
        ExpiredSignatureError: If the ``exp`` claim has passed.
        InvalidTokenError: For any other signature or format problem.
    """
    return jwt.decode(token, secret, algorithms=algorithms, options={"require": ["exp", "sub"]})
