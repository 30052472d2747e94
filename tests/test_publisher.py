"""
Redis-backed dispatcher: sends are scheduled in the background, failures are
logged and never reach the caller, and drain() waits for in-flight sends.
"""
import asyncio
import json
import logging
from decimal import Decimal

import pytest

from marketplace.notifications.publisher import RedisPublisher
from marketplace.workflow.orders import OrderWorkflow
from tests.conftest import order_request


class GatedRedis:
    """Holds every publish until the gate opens."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.sent: list[tuple[str, dict]] = []

    async def publish(self, channel: str, message: str) -> int:
        await self.gate.wait()
        self.sent.append((channel, json.loads(message)))
        return 1


class DownRedis:
    def __init__(self):
        self.attempts = 0

    async def publish(self, channel: str, message: str) -> int:
        self.attempts += 1
        raise ConnectionError("Connection refused")


@pytest.mark.asyncio
async def test_publish_returns_before_redis_answers():
    redis = GatedRedis()
    publisher = RedisPublisher(redis, channel_prefix="marketplace:")

    await asyncio.wait_for(
        publisher.publish("user:3", {"event": "order_status_changed", "status": "confirmed"}),
        timeout=0.5,
    )
    assert redis.sent == []

    redis.gate.set()
    await publisher.drain()
    assert redis.sent == [("marketplace:user:3", {"event": "order_status_changed", "status": "confirmed"})]


@pytest.mark.asyncio
async def test_failed_send_is_logged_not_raised(caplog):
    redis = DownRedis()
    publisher = RedisPublisher(redis, channel_prefix="marketplace:")

    with caplog.at_level(logging.WARNING, logger="marketplace.notifications.publisher"):
        await publisher.publish("restaurant:1", {"event": "new_order"})
        await publisher.drain()

    assert redis.attempts == 1
    assert "marketplace:restaurant:1" in caplog.text
    assert "Connection refused" in caplog.text


@pytest.mark.asyncio
async def test_drain_waits_for_every_pending_send():
    redis = GatedRedis()
    publisher = RedisPublisher(redis)
    for n in range(3):
        await publisher.publish(f"user:{n}", {"n": n})

    drain = asyncio.create_task(publisher.drain())
    await asyncio.sleep(0)
    assert not drain.done()

    redis.gate.set()
    await asyncio.wait_for(drain, timeout=1)
    assert sorted(channel for channel, _ in redis.sent) == ["user:0", "user:1", "user:2"]

    # Nothing left in flight
    await asyncio.wait_for(publisher.drain(), timeout=0.5)


@pytest.mark.asyncio
async def test_decimal_amounts_are_sent_as_strings():
    redis = GatedRedis()
    redis.gate.set()
    publisher = RedisPublisher(redis)

    await publisher.publish("restaurant:2", {"final_amount": Decimal("28.75")})
    await publisher.drain()
    assert redis.sent == [("restaurant:2", {"final_amount": "28.75"})]


@pytest.mark.asyncio
async def test_order_survives_redis_outage(session_factory, seed):
    redis = DownRedis()
    publisher = RedisPublisher(redis, channel_prefix="marketplace:")
    workflow = OrderWorkflow(session_factory, publisher, tax_rate=Decimal("0.05"), delivery_estimate_minutes=45)

    order = await workflow.create_order(seed.customer, order_request(seed.restaurant_id, [(seed.item_a_id, 1)]))
    await publisher.drain()

    assert order.id is not None
    assert redis.attempts == 1
    fetched = await workflow.get_order(seed.customer, order.id)
    assert fetched.order_number == order.order_number
