"""Tests for the identity gate."""
import pytest
from jose import jwt

from community.core.config import settings
from community.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from community.core.security import create_access_token
from community.services.auth_service import ensure_owner_or_admin, get_active_user, resolve_caller


async def test_resolve_caller(db, admin):
    caller = await resolve_caller(db, create_access_token(admin.id))
    assert caller.user_id == admin.id
    assert caller.email == admin.email
    assert caller.is_admin
    assert not caller.is_restricted


async def test_resolve_caller_restricted_flag(db, banned):
    caller = await resolve_caller(db, create_access_token(banned.id))
    assert caller.is_restricted


@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "1", "type": "refresh"},
        {"sub": "alice", "type": "access"},
        {"type": "access"},
    ],
)
async def test_resolve_caller_rejects_bad_claims(db, alice, claims):
    token = jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(UnauthorizedError):
        await resolve_caller(db, token)


async def test_resolve_caller_rejects_foreign_signature(db, alice):
    token = jwt.encode({"sub": str(alice.id), "type": "access"}, "some-other-secret", algorithm="HS256")
    with pytest.raises(UnauthorizedError):
        await resolve_caller(db, token)


async def test_get_active_user(db, alice, banned):
    assert (await get_active_user(db, alice.id)).id == alice.id
    with pytest.raises(ForbiddenError):
        await get_active_user(db, banned.id)
    with pytest.raises(NotFoundError):
        await get_active_user(db, 999)


async def test_owner_or_admin(alice, bob, admin):
    ensure_owner_or_admin(alice, alice.id)
    ensure_owner_or_admin(admin, alice.id)
    with pytest.raises(ForbiddenError) as exc_info:
        ensure_owner_or_admin(bob, alice.id)
    assert exc_info.value.code == "not_owner"
