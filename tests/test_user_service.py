"""Tests for UserService account management."""
import uuid

import pytest

from wiowa_api.models.base import UserRole
from wiowa_api.services.user_service import (
    EmailAlreadyExistsError,
    UserNotFoundError,
    UserService,
    normalize_email,
)
from wiowa_api.utils.passwords import PasswordValidationError, verify_password


def test_normalize_email():
    assert normalize_email("  Mixed.Case@Example.COM ") == "mixed.case@example.com"


@pytest.mark.asyncio
async def test_create_user_hashes_password(db_session):
    email = f"create_{uuid.uuid4().hex[:8]}@example.com"

    user = await UserService(db_session).create_user(email, "TestPassword123!", first_name="Grace")

    assert user.user_id is not None
    assert user.password_hash != "TestPassword123!"
    assert verify_password("TestPassword123!", user.password_hash)
    assert user.role == UserRole.USER.value
    assert user.is_active
    assert not user.is_email_verified
    assert user.created_at is not None


@pytest.mark.asyncio
async def test_create_user_rejects_duplicate_email(db_session, user_factory):
    user = await user_factory()

    with pytest.raises(EmailAlreadyExistsError, match="User with this email already exists"):
        await UserService(db_session).create_user(user.email.upper(), "TestPassword123!")


@pytest.mark.asyncio
@pytest.mark.parametrize("password", ["Short1!", "nouppercase1!", "NOLOWERCASE1!", "NoDigits!!", "NoSpecial123"])
async def test_create_user_enforces_password_policy(db_session, password):
    with pytest.raises(PasswordValidationError):
        await UserService(db_session).create_user(f"weak_{uuid.uuid4().hex[:8]}@example.com", password)


@pytest.mark.asyncio
async def test_get_user_not_found(db_session):
    service = UserService(db_session)
    missing_id = uuid.uuid4()

    assert await service.get_user_by_id(missing_id) is None
    assert await service.get_user_by_id("not-a-uuid") is None
    with pytest.raises(UserNotFoundError, match=f"User with ID {missing_id} not found"):
        await service.get_user(missing_id)


@pytest.mark.asyncio
async def test_update_user_fields(db_session, user_factory):
    user = await user_factory()
    new_email = f"Updated_{uuid.uuid4().hex[:8]}@Example.com"

    updated = await UserService(db_session).update_user(
        user.user_id,
        {"email": new_email, "first_name": "Updated", "is_active": False, "password_hash": "ignored"},
    )

    assert updated.email == new_email.lower()
    assert updated.first_name == "Updated"
    assert updated.is_active is False
    assert updated.password_hash != "ignored"


@pytest.mark.asyncio
async def test_update_user_email_conflict(db_session, user_factory):
    first = await user_factory()
    second = await user_factory()

    with pytest.raises(EmailAlreadyExistsError, match="Email already in use"):
        await UserService(db_session).update_user(second.user_id, {"email": first.email})


@pytest.mark.asyncio
async def test_update_role(db_session, user_factory):
    user = await user_factory()

    updated = await UserService(db_session).update_role(user.user_id, UserRole.ADMIN)

    assert updated.role == "admin"
    assert updated.is_admin


@pytest.mark.asyncio
async def test_remove_user(db_session, user_factory):
    user = await user_factory()
    service = UserService(db_session)

    await service.remove_user(user.user_id)

    assert await service.get_user_by_id(user.user_id) is None
    with pytest.raises(UserNotFoundError):
        await service.remove_user(user.user_id)


@pytest.mark.asyncio
async def test_verify_credentials(db_session, user_factory):
    user = await user_factory()
    service = UserService(db_session)

    assert (await service.verify_credentials(user.email, "TestPassword123!")).user_id == user.user_id
    assert await service.verify_credentials(user.email, "WrongPassword1!") is None
    assert await service.verify_credentials("missing@example.com", "TestPassword123!") is None
