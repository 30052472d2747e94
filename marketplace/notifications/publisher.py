"""
Marketplace API — Notification dispatcher

The order workflow only sees the narrow Publisher interface. Delivery is
asynchronous, at-most-once and never raises into the caller.

Topics:
  user:{user_id}             — events for one customer
  restaurant:{restaurant_id} — events for one restaurant's operators
"""
import asyncio
import json
import logging
from typing import Any, Protocol

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

NEW_ORDER = "new_order"
ORDER_STATUS_CHANGED = "order_status_changed"


def user_topic(user_id: int) -> str:
    return f"user:{user_id}"


def restaurant_topic(restaurant_id: int) -> str:
    return f"restaurant:{restaurant_id}"


class Publisher(Protocol):
    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        ...


class NullPublisher:
    """Drops every event. Used when notifications are disabled."""

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        return None


class RedisPublisher:
    """
    Publishes events on Redis pub/sub channels <prefix><topic>.
    publish() only schedules the send; the task logs its own failures.
    """

    def __init__(self, redis: aioredis.Redis, channel_prefix: str = ""):
        self._redis = redis
        self._prefix = channel_prefix
        self._pending: set[asyncio.Task] = set()

    def channel(self, topic: str) -> str:
        return f"{self._prefix}{topic}"

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        message = json.dumps(payload, default=str)
        task = asyncio.create_task(self._send(self.channel(topic), message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, channel: str, message: str) -> None:
        try:
            await self._redis.publish(channel, message)
        except Exception as exc:
            # Notification failures MUST NOT affect order processing
            logger.warning("Publish to %s failed: %s", channel, exc)

    async def drain(self) -> None:
        """Wait for in-flight sends, e.g. on shutdown."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
