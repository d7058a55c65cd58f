"""
Tests for API tokens and actor resolution.
"""
import jwt
import pytest

from app.core import config
from app.core.errors import AuthenticationRequired
from app.features.users.auth import ALGORITHM, issue_token, verify_token
from app.features.users.dependencies import resolve_actor
from tests.factories import build_user


@pytest.mark.asyncio
async def test_issue_and_verify_token(db):
    user = await build_user(db)
    payload = verify_token(issue_token(user))
    assert payload["id"] == user.id
    assert payload["exp"] > payload["iat"]


@pytest.mark.asyncio
async def test_expired_token_rejected(db):
    user = await build_user(db)
    token = issue_token(user, ttl_seconds=-10)
    with pytest.raises(AuthenticationRequired) as exc_info:
        verify_token(token)
    assert exc_info.value.reason == "token expired"


def test_token_signed_with_other_key_rejected():
    token = jwt.encode({"id": "someone"}, "another-secret", algorithm=ALGORITHM)
    with pytest.raises(AuthenticationRequired):
        verify_token(token)


def test_token_without_id_rejected():
    token = jwt.encode({"sub": "someone"}, config.SECRET_KEY, algorithm=ALGORITHM)
    with pytest.raises(AuthenticationRequired):
        verify_token(token)


def test_garbage_token_rejected():
    with pytest.raises(AuthenticationRequired):
        verify_token("not-a-token")


@pytest.mark.asyncio
async def test_resolve_actor(db):
    user = await build_user(db, is_admin=True)
    actor = await resolve_actor(db, issue_token(user))
    assert actor.id == user.id
    assert actor.team_id == user.team_id
    assert actor.is_admin is True


@pytest.mark.asyncio
async def test_resolve_actor_missing_token(db):
    with pytest.raises(AuthenticationRequired):
        await resolve_actor(db, None)


@pytest.mark.asyncio
async def test_resolve_actor_unknown_user(db):
    token = jwt.encode({"id": "01HZZZZZZZZZZZZZZZZZZZZZZZ"}, config.SECRET_KEY, algorithm=ALGORITHM)
    with pytest.raises(AuthenticationRequired) as exc_info:
        await resolve_actor(db, token)
    assert exc_info.value.reason == "unknown user"
