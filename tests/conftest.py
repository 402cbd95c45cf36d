"""Pytest configuration and fixtures."""
import os
import uuid
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Ensure the application uses a dedicated SQLite database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"
# Cheap hashes keep the suite fast
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_URL"] = ""
os.environ["TOKEN_CLEANUP_ENABLED"] = "false"

from wiowa_api.config import get_settings
from wiowa_api.models.base import UserRole
from wiowa_api.utils.kv_store import InMemoryKeyValueStore


BASE_DIR = Path(__file__).resolve().parent.parent
TEST_DB_PATH = BASE_DIR / "test.db"
DEFAULT_PASSWORD = "TestPassword123!"
settings = get_settings()


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply database migrations against the test database."""
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(alembic_cfg, "head")

    yield

    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            # Still in use on some platforms; removed on the next run
            pass


@pytest.fixture
async def test_engine():
    """Engine bound to the migrated test database."""
    engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()
        await session.close()


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
async def test_app(test_engine, kv_store):
    """Create test app with database and storage overrides."""
    from wiowa_api.main import app
    from wiowa_api.database import get_db
    from wiowa_api.dependencies import get_kv_store

    async def override_get_db():
        async_session = async_sessionmaker(
            test_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        async with async_session() as session:
            try:
                yield session
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_kv_store] = lambda: kv_store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def user_factory(db_session):
    """Factory for creating test users with default credentials."""
    from wiowa_api.services.user_service import UserService

    user_service = UserService(db_session)

    async def _create_user(
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        *,
        role: UserRole = UserRole.USER,
        verified: bool = True,
        is_active: bool = True,
    ):
        # Unique emails across all tests sharing the database
        if email is None:
            email = f"user_{uuid.uuid4().hex[:8]}@example.com"

        user = await user_service.create_user(email, password, role=role)
        user.is_email_verified = verified
        user.is_active = is_active
        await db_session.commit()
        return user

    return _create_user


@pytest.fixture
def auth_headers(db_session):
    """Build a bearer Authorization header for a user."""
    from wiowa_api.services.auth_service import AuthService

    def _headers(user) -> dict[str, str]:
        token, _ = AuthService(db_session).create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _headers
