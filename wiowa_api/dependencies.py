"""FastAPI dependencies."""
import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wiowa_api.config import get_settings
from wiowa_api.database import get_db
from wiowa_api.models.user import User
from wiowa_api.services.auth_service import AuthService, InvalidAccessTokenError
from wiowa_api.services.memory import MatchService, MatchStorage
from wiowa_api.services.motus import MotusService
from wiowa_api.utils.kv_store import KeyValueStore, create_store

logger = logging.getLogger(__name__)


settings = get_settings()


def get_client_ip(
    request: Request,
    x_forwarded_for: str | None = Header(default=None, alias="X-Forwarded-For"),
    x_real_ip: str | None = Header(default=None, alias="X-Real-IP"),
) -> str:
    """Return the caller's IP, honouring proxy headers."""
    if x_forwarded_for:
        # X-Forwarded-For can be a comma-separated list, take the first (client) IP
        return x_forwarded_for.split(",")[0].strip()
    if x_real_ip:
        return x_real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def get_current_user(
        request: Request,
        authorization: str | None = Header(default=None, alias="Authorization"),
        db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the current authenticated user via JWT access token.

    Checks for access token in the following order:
    1. HTTP-only cookie
    2. Authorization header (API clients)
    """
    token = request.cookies.get(settings.access_token_cookie_name)
    token_source = "cookie"

    if not token and authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise HTTPException(status_code=401, detail="invalid_authorization_header")
        token_source = "header"

    if not token:
        raise HTTPException(status_code=401, detail="missing_credentials")

    auth_service = AuthService(db)
    try:
        user = await auth_service.get_user_from_access_token(token)
    except InvalidAccessTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    logger.debug(f"Authenticated user via JWT {token_source}: {user.user_id}")
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    """Verify that the current authenticated user has the admin role.

    Raises:
        HTTPException: 403 if the user is not an admin
    """
    if not user.is_admin:
        logger.warning(f"Access denied to admin endpoint for non-admin user {user.user_id}")
        raise HTTPException(status_code=403, detail="admin_access_required")
    return user


@lru_cache()
def get_kv_store() -> KeyValueStore:
    """Process-wide store for match and word game data."""
    return create_store(settings.redis_url)


def get_user_store(
    user: User = Depends(get_current_user),
    store: KeyValueStore = Depends(get_kv_store),
) -> KeyValueStore:
    """Scope the store to the authenticated user."""
    return store.namespaced(f"user:{user.user_id.hex}")


def get_match_service(store: KeyValueStore = Depends(get_user_store)) -> MatchService:
    storage = MatchStorage(
        store,
        version=settings.storage_version,
        history_limit=settings.match_history_limit,
    )
    return MatchService(storage)


def get_motus_service(store: KeyValueStore = Depends(get_user_store)) -> MotusService:
    return MotusService(store, version=settings.storage_version)
