"""Session revocation using a Redis blacklist.

Logout blacklists the token until its natural expiry. A Redis outage is a
DependencyFailure: the check neither admits nor rejects the session on its own.
"""

import logging
import time
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from workhub.config import settings
from workhub.errors import DependencyFailure

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create the shared Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Close the Redis connection (called on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


class TokenRevocation:
    """Manage session token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> None:
        """Blacklist `token` until `expires_at` (unix timestamp)."""
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            # Already expired; decode_token rejects it anyway
            return

        redis_client = await get_redis()
        try:
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
        except RedisError as e:
            logger.error(f"Failed to revoke token: {e}")
            raise DependencyFailure("Session store unavailable") from e

    @staticmethod
    async def is_revoked(token: str) -> bool:
        redis_client = await get_redis()
        try:
            exists = await redis_client.exists(f"revoked:{token}")
        except RedisError as e:
            logger.error(f"Failed to check token revocation: {e}")
            raise DependencyFailure("Session store unavailable") from e
        return exists > 0
