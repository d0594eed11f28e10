"""
Redis connection.

Backs token revocation (logout) and auth rate limiting. The client is built
on first use and closed at shutdown; both callers fail open when Redis is
unreachable.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from carpool.app.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Shared client, created lazily; no connection is opened until a command runs."""
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=settings.redis_decode_responses,
        )
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client is None:
        return
    try:
        await redis_client.aclose()
    except RedisError as e:
        logger.warning("Error closing Redis client: %s", e)
    redis_client = None
