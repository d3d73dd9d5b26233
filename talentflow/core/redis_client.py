"""Redis client for the outbound notification queue."""

import json
import logging

from redis.asyncio import Redis

from talentflow.core.config import settings

logger = logging.getLogger(__name__)

# Async Redis client
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """Get or create async Redis client."""
    global _redis_client
    if _redis_client is None:
        if not settings.redis_url:
            raise RuntimeError("REDIS_URL is not configured")
        _redis_client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class NotificationQueue:
    """Redis list consumed by the external notification pipeline.

    Producers RPUSH JSON documents; the delivery workers BLPOP them, so the
    list is FIFO per producer.
    """

    def __init__(self, key: str | None = None):
        self.key = key or settings.notification_queue

    async def push(self, payload: dict) -> int:
        """Append one payload, returning the queue length after the push."""
        redis = await get_redis()
        length = await redis.rpush(self.key, json.dumps(payload, default=str))
        logger.debug(f"Queued notification {payload.get('event')} on {self.key}")
        return length

    async def length(self) -> int:
        """Get the number of undelivered notifications."""
        redis = await get_redis()
        return await redis.llen(self.key)
