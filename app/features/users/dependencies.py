"""
FastAPI dependencies for authentication.
"""
import json
from typing import Annotated, Any, Optional
from fastapi import Depends, Request
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.errors import AuthenticationRequired
from app.features.policies.engine import Actor
from app.features.users.auth import verify_token
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


def token_from_header(request: Request) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header, if any."""
    auth = request.headers.get("Authorization", "")
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def token_from_body(body: Any) -> Optional[str]:
    """
    Token from a `token` field in a request body.

    Accepts the raw bytes/str of the body or an already decoded object.
    Anything that is not a JSON object with a non-empty string `token` yields
    None.
    """
    if isinstance(body, (bytes, str)):
        if not body:
            return None
        try:
            body = json.loads(body)
        except ValueError:
            return None
    if isinstance(body, dict) and isinstance(body.get("token"), str) and body["token"]:
        return body["token"]
    return None


async def get_token(request: Request) -> Optional[str]:
    """
    Extract the API token from the request.

    Looks at the `Authorization: Bearer` header first, then at a `token`
    field in the JSON body.
    """
    return token_from_header(request) or token_from_body(await request.body())


async def resolve_actor(db: AsyncSession, token: Optional[str]) -> Actor:
    """
    Turn a token into an Actor.

    Raises:
        AuthenticationRequired: If there is no token, it does not verify, or
            the user it names no longer exists
    """
    if not token:
        raise AuthenticationRequired("missing token")

    payload = verify_token(token)

    result = await db.execute(select(User).where(User.id == payload["id"]))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationRequired("unknown user")

    return Actor.from_user(user)


async def get_current_actor(
    request: Request,
    token: Annotated[Optional[str], Depends(get_token)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Actor:
    """
    Get the authenticated actor for this request.

    The actor id is also kept on `request.state` for the rate limiter.

    Usage:
        @router.post("/groups.list")
        async def list_groups(actor: Actor = Depends(get_current_actor)):
            ...
    """
    try:
        actor = await resolve_actor(db, token)
    except AuthenticationRequired as e:
        log.info(f"Unauthenticated request: {e.reason}")
        raise
    request.state.actor_id = actor.id
    return actor


def get_rate_limit_key(request: Request) -> str:
    """
    Rate limit bucket for a request.
    Used with slowapi Limiter: one bucket per authenticated user, falling back
    to the client address.
    """
    actor_id = getattr(request.state, "actor_id", None)
    if actor_id:
        return f"user:{actor_id}"
    return get_remote_address(request)
