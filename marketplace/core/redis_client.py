"""
Marketplace API — Shared Redis connection

One lazily created client backs the notification publisher and the health
check. Each SSE stream takes its own pub/sub handle from that client and
must close it when the stream ends.
"""
import asyncio

import redis.asyncio as aioredis
from redis.asyncio.client import PubSub

from marketplace.core.config import get_settings

settings = get_settings()
_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
    return _client


async def open_subscription(channels: list[str]) -> PubSub:
    pubsub = get_redis().pubsub()
    await pubsub.subscribe(*channels)
    return pubsub


async def ping_redis() -> None:
    """Raises if Redis does not answer within HEALTH_CHECK_TIMEOUT."""
    await asyncio.wait_for(get_redis().ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
