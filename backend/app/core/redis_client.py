"""
Redis client initialization and connection management.

Redis backs the token blacklist used by the authentication dependency.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError
from backend.app.core.config import settings


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except RedisError:
        return False
