"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when accounts are deactivated or sessions are signed out.

Lookups fail closed: if Redis cannot be reached, the request is refused
with ServiceUnavailableError rather than treated as "not revoked".
"""

import logging
from redis.exceptions import RedisError
from backend.app.core import redis_client as redis_client_module
from backend.app.core.config import settings
from backend.app.core.exceptions import ServiceUnavailableError

logger = logging.getLogger("nexachain.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _ttl_seconds() -> int:
    # Tokens expire on their own; flags only need to outlive them
    return settings.access_token_expire_minutes * 60


async def revoke_token(token: str, user_id: str) -> None:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token (stored for audit purposes)
    """
    client = await redis_client_module.get_redis()
    try:
        await client.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", _ttl_seconds(), str(user_id))
    except (RedisError, OSError) as e:
        logger.error("Error revoking token", extra={"user_id": user_id, "error": str(e)})
        raise ServiceUnavailableError("redis") from e


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Raises:
        ServiceUnavailableError: if Redis cannot answer
    """
    client = await redis_client_module.get_redis()
    try:
        exists = await client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
    except (RedisError, OSError) as e:
        logger.error("Error checking token revocation", extra={"error": str(e)})
        raise ServiceUnavailableError("redis") from e
    return exists > 0


async def revoke_all_user_tokens(user_id: str) -> None:
    """
    Revoke all active tokens for a specific user.

    Called when an account is deactivated to immediately terminate all sessions.
    """
    client = await redis_client_module.get_redis()
    try:
        await client.setex(f"{USER_TOKENS_PREFIX}{user_id}:revoked", _ttl_seconds(), "1")
    except (RedisError, OSError) as e:
        logger.error("Error revoking all tokens", extra={"user_id": user_id, "error": str(e)})
        raise ServiceUnavailableError("redis") from e


async def are_user_tokens_revoked(user_id: str) -> bool:
    """
    Check if all tokens for a user have been revoked.

    Raises:
        ServiceUnavailableError: if Redis cannot answer
    """
    client = await redis_client_module.get_redis()
    try:
        exists = await client.exists(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
    except (RedisError, OSError) as e:
        logger.error("Error checking user token revocation", extra={"user_id": user_id, "error": str(e)})
        raise ServiceUnavailableError("redis") from e
    return exists > 0


async def clear_user_token_revocation(user_id: str) -> None:
    """
    Clear the global token revocation flag for a user.

    Called when a deactivated account is activated again.
    """
    client = await redis_client_module.get_redis()
    try:
        await client.delete(f"{USER_TOKENS_PREFIX}{user_id}:revoked")
    except (RedisError, OSError) as e:
        logger.error("Error clearing token revocation", extra={"user_id": user_id, "error": str(e)})
        raise ServiceUnavailableError("redis") from e
