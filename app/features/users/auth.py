"""
API token utilities.

Tokens are HS256 JWTs signed with SECRET_KEY whose `id` claim is the user's
ULID. Verification only proves the token is authentic and unexpired; the
caller still has to load the user it names.
"""
from datetime import datetime, timedelta, timezone
import jwt

from app.core import config
from app.core.errors import AuthenticationRequired
from app.utils import get_logger


log = get_logger(__name__)

ALGORITHM = "HS256"

if config.SECRET_KEY == config.DEFAULT_SECRET_KEY:
    log.warning("SECRET_KEY is not set, using the development default")


def issue_token(user, ttl_seconds: int | None = None) -> str:
    """
    Sign an API token for a user.

    Args:
        user: User (or anything with an `id`)
        ttl_seconds: Lifetime, defaults to TOKEN_TTL_SECONDS

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    ttl = config.TOKEN_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    payload = {
        "id": user.id,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, config.SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify a token and return its payload.

    Raises:
        AuthenticationRequired: If the token is invalid, expired or has no `id`
    """
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("token expired")
    except jwt.InvalidTokenError as e:
        raise AuthenticationRequired(f"invalid token: {e}")

    if not payload.get("id"):
        raise AuthenticationRequired("token has no id claim")

    return payload
