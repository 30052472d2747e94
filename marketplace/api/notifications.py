"""
Marketplace API — Real-time order events (SSE over Redis pub/sub)

The caller is subscribed to their own user topic and, for cooks, to the
topic of every restaurant they operate. Events are streamed until the
client disconnects.
"""
import asyncio
import json
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_caller, get_db
from marketplace.core.access import Caller, Role
from marketplace.core.config import get_settings
from marketplace.core.redis_client import open_subscription
from marketplace.db import catalog_ops
from marketplace.notifications.publisher import restaurant_topic, user_topic

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["notifications"])


def subscription_topics(caller: Caller, restaurant_ids: list[int]) -> list[str]:
    topics = [user_topic(caller.user_id)]
    if caller.role is Role.COOK:
        topics.extend(restaurant_topic(rid) for rid in restaurant_ids)
    return topics


async def _sse_generator(channels: list[str], request: Request) -> AsyncGenerator[str, None]:
    """Subscribe to Redis pub/sub and yield SSE events."""
    pubsub = await open_subscription(channels)
    prefix_len = len(settings.NOTIFICATION_CHANNEL_PREFIX)

    try:
        yield ": connected\n\n"
        yield f"retry: {settings.SSE_RETRY_MILLISECONDS}\n\n"

        while True:
            if await request.is_disconnected():
                break

            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message and message["type"] == "message":
                try:
                    payload = json.loads(message["data"])
                except ValueError:
                    logger.warning("Dropping malformed event on %s", message["channel"])
                    continue
                payload.setdefault("topic", message["channel"][prefix_len:])
                event = payload.get("event", "message")
                yield f"event: {event}\ndata: {json.dumps(payload)}\n\n"
            else:
                yield ": keepalive\n\n"
                await asyncio.sleep(settings.SSE_KEEPALIVE_INTERVAL_SECONDS)
    finally:
        await pubsub.unsubscribe(*channels)
        await pubsub.aclose()


@router.get("/stream")
async def stream_notifications(
    request: Request,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    restaurant_ids = []
    if caller.role is Role.COOK:
        restaurant_ids = await catalog_ops.restaurant_ids_for_cook(db, caller.user_id)
    channels = [
        f"{settings.NOTIFICATION_CHANNEL_PREFIX}{topic}"
        for topic in subscription_topics(caller, restaurant_ids)
    ]

    return StreamingResponse(
        _sse_generator(channels, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",  # Disable Nginx buffering
            "Connection": "keep-alive",
        },
    )
