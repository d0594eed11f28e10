"""
Token revocation (logout) backed by Redis.

A revoked token is stored until the moment it would have expired anyway, so
the blacklist never outgrows the set of still-valid tokens.
"""

import logging
import time
from typing import Optional

from redis.exceptions import RedisError

from carpool.app.core.config import settings
from carpool.app.core.redis_client import get_redis

logger = logging.getLogger(__name__)

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


def _remaining_lifetime(expires_at: Optional[int]) -> int:
    if expires_at is None:
        return settings.access_token_expire_minutes * 60
    return max(1, int(expires_at - time.time()))


async def revoke_token(token: str, user_id: int, expires_at: Optional[int] = None) -> bool:
    """
    Blacklist ``token`` until its ``exp`` (epoch seconds).

    Returns:
        True if stored, False when Redis is unavailable
    """
    try:
        client = await get_redis()
        await client.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", _remaining_lifetime(expires_at), str(user_id))
        return True
    except RedisError as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """Fails open: with Redis unreachable every token counts as not revoked."""
    try:
        client = await get_redis()
        return await client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except RedisError as e:
        logger.warning("Error checking token revocation: %s", e)
        return False
