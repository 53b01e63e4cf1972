"""Shared rate limiter instance.

Authenticated requests are counted per user (JWT subject), anonymous ones per
client address.  Counters live in Redis when it answers a ping at startup,
otherwise in process memory (development / tests).
"""

import logging

import redis as sync_redis
from jose import JWTError
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    """Limit key: ``user:<id>`` for a valid bearer token, else the client IP."""
    from cuidoteca.core.security import decode_token

    auth = request.headers.get("authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            subject = decode_token(token).get("sub")
        except JWTError:
            subject = None
        if subject:
            return f"user:{subject}"
    return get_remote_address(request)


def _create_limiter() -> Limiter:
    from cuidoteca.config import settings

    try:
        client = sync_redis.from_url(settings.REDIS_URL, socket_connect_timeout=1)
        client.ping()
        client.close()
        logger.info("Rate limiter: Redis storage (%s)", settings.REDIS_URL)
        return Limiter(
            key_func=rate_limit_key,
            default_limits=[settings.RATE_LIMIT_DEFAULT],
            storage_uri=settings.REDIS_URL,
        )
    except Exception:
        logger.warning("Rate limiter: Redis unavailable, using in-memory storage")
        return Limiter(key_func=rate_limit_key, default_limits=[settings.RATE_LIMIT_DEFAULT])


limiter = _create_limiter()
