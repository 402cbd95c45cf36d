"""HTTP cookie helpers."""
from fastapi import Response

from wiowa_api.config import get_settings


def _set_token_cookie(response: Response, name: str, token: str, max_age: int) -> None:
    settings = get_settings()
    # Secure flag: only disable for local development and tests
    secure_value = settings.environment not in ("development", "test")

    response.set_cookie(
        key=name,
        value=token,
        httponly=True,
        secure=secure_value,
        samesite="lax",
        max_age=max_age,
        expires=max_age,
        path="/",
    )


def set_refresh_cookie(response: Response, token: str) -> None:
    """Set the refresh token cookie; it lives as long as the refresh token itself."""
    settings = get_settings()
    max_age = int(settings.refresh_token_lifetime.total_seconds())
    _set_token_cookie(response, settings.refresh_token_cookie_name, token, max_age)


def set_access_token_cookie(response: Response, token: str) -> None:
    """Set the access token cookie with the configured access token lifetime."""
    settings = get_settings()
    max_age = int(settings.access_token_lifetime.total_seconds())
    _set_token_cookie(response, settings.access_token_cookie_name, token, max_age)


def clear_auth_cookies(response: Response) -> None:
    """Remove both access and refresh token cookies from the client."""

    settings = get_settings()
    response.delete_cookie(key=settings.access_token_cookie_name, path="/")
    response.delete_cookie(key=settings.refresh_token_cookie_name, path="/")
