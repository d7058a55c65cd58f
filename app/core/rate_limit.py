"""
Shared slowapi limiter.

Limits are applied per route with `@limiter.limit(rate_limit)`. The decorated
endpoint runs after its dependencies, so by the time the key is computed the
caller's actor is known and each user gets a bucket of their own.
"""
from slowapi import Limiter

from app.core import config
from app.features.users.dependencies import get_rate_limit_key


def rate_limit() -> str:
    """Current limit string, read per request so it can be changed at runtime."""
    return config.RATE_LIMIT


limiter = Limiter(key_func=get_rate_limit_key, enabled=config.RATE_LIMIT_ENABLED)
