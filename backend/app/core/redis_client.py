"""
Redis connection for the token revocation store.

Revocation flags are checked on every authenticated request, so the client
uses short socket timeouts: a stalled Redis must turn into a fast 503, not a
hung request.
"""

import logging

import redis.asyncio as redis
from backend.app.core.config import settings

logger = logging.getLogger("nexachain.redis")


def build_redis_client() -> redis.Redis:
    return redis.from_url(
        settings.redis_url,
        decode_responses=settings.redis_decode_responses,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
        health_check_interval=30,
    )


redis_client = build_redis_client()


async def get_redis() -> redis.Redis:
    """Looked up at call time so the client can be swapped in tests."""
    return redis_client


async def ping_redis() -> bool:
    """True when Redis answers PING, False on any connection or protocol error."""
    try:
        return bool(await redis_client.ping())
    except (redis.RedisError, OSError) as e:
        logger.warning("Redis ping failed", extra={"error": str(e)})
        return False


async def close_redis() -> None:
    """Release pooled connections on shutdown."""
    await redis_client.aclose()
