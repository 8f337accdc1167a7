"""
Token Revocation System using Redis.

Implements token blacklisting so a logged-out or blocked caller loses
access before the JWT expires.
"""

import logging

from redis.exceptions import RedisError

from backend.app.core import redis_client as redis_module
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefixes
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    The entry expires together with the token itself.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis_module.redis_client.set(key, str(user_id), ex=ttl_seconds)
        return True
    except RedisError as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """Check if a token has been revoked."""
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        exists = await redis_module.redis_client.exists(key)
        return exists > 0
    except RedisError as e:
        # Fail open when redis is down
        logger.warning("Error checking token revocation: %s", e)
        return False

