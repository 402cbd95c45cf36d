"""Authentication endpoints."""
import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from wiowa_api.config import get_settings
from wiowa_api.database import get_db
from wiowa_api.dependencies import get_client_ip, get_current_user
from wiowa_api.models.user import User
from wiowa_api.schemas.auth import (
    AuthTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
)
from wiowa_api.schemas.base import MessageResponse
from wiowa_api.schemas.user import UserResponse, UserSummary
from wiowa_api.services.auth_service import (
    REGISTER_MESSAGE,
    RESET_PASSWORD_MESSAGE,
    VERIFY_EMAIL_MESSAGE,
    AccountTokenError,
    AuthError,
    AuthService,
)
from wiowa_api.services.user_service import EmailAlreadyExistsError
from wiowa_api.utils.cookies import (
    clear_auth_cookies,
    set_access_token_cookie,
    set_refresh_cookie,
)
from wiowa_api.utils.passwords import PasswordValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


def _token_response(
    user: User,
    access_token: str,
    refresh_token: str,
    expires_in: int,
    response: Response,
) -> AuthTokenResponse:
    set_access_token_cookie(response, access_token)
    set_refresh_cookie(response, refresh_token)
    return AuthTokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=expires_in,
        user=UserSummary.model_validate(user),
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """Create an account and send the verification email."""

    auth_service = AuthService(db)
    try:
        user = await auth_service.register(
            request.email,
            request.password,
            first_name=request.first_name,
            last_name=request.last_name,
        )
    except EmailAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except PasswordValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return RegisterResponse(message=REGISTER_MESSAGE, user=UserSummary.model_validate(user))


@router.post("/login", response_model=AuthTokenResponse)
async def login(
    request: LoginRequest,
    response: Response,
    client_ip: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db),
) -> AuthTokenResponse:
    """Authenticate via email/password and issue JWT tokens."""

    auth_service = AuthService(db)
    try:
        user = await auth_service.authenticate_user(request.email, request.password)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    access_token, refresh_token, expires_in = await auth_service.login(user, client_ip)
    return _token_response(user, access_token, refresh_token, expires_in, response)


@router.post("/refresh", response_model=AuthTokenResponse)
async def refresh_tokens(
    response: Response,
    request: RefreshRequest | None = None,
    refresh_cookie: str | None = Cookie(
        default=None, alias=settings.refresh_token_cookie_name
    ),
    client_ip: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db),
) -> AuthTokenResponse:
    """Exchange a refresh token for new credentials."""

    token = (request.refresh_token if request else None) or refresh_cookie
    if not token:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    auth_service = AuthService(db)
    try:
        user, access_token, new_refresh_token, expires_in = await auth_service.rotate_refresh_token(
            token, client_ip
        )
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return _token_response(user, access_token, new_refresh_token, expires_in, response)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    request: LogoutRequest | None = None,
    refresh_cookie: str | None = Cookie(
        default=None, alias=settings.refresh_token_cookie_name
    ),
    client_ip: str = Depends(get_client_ip),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Revoke the refresh token if it exists and clear cookies."""

    token = (request.refresh_token if request else None) or refresh_cookie
    auth_service = AuthService(db)
    message = await auth_service.logout(token, client_ip)

    clear_auth_cookies(response)
    return MessageResponse(message=message)


@router.get("/verify-email")
async def verify_email(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
) -> dict:
    auth_service = AuthService(db)
    try:
        user = await auth_service.verify_email(token)
    except AccountTokenError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "message": VERIFY_EMAIL_MESSAGE,
        "user": {
            "user_id": str(user.user_id),
            "email": user.email,
            "is_email_verified": user.is_email_verified,
        },
    }


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    auth_service = AuthService(db)
    message = await auth_service.forgot_password(request.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    auth_service = AuthService(db)
    try:
        await auth_service.reset_password(request.token, request.new_password)
    except AccountTokenError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PasswordValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return MessageResponse(message=RESET_PASSWORD_MESSAGE)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """Return the profile of the authenticated user."""
    return UserResponse.model_validate(user)
