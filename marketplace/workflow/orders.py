"""
Marketplace API — Order workflow

Flow for create_order():
  1. Caller must be a customer; the line list must not be empty
  2. Restaurant must exist and be active
  3. Every line resolves to an available menu item of THAT restaurant
  4. Pricing engine computes the totals from the current menu prices
  5. Order, lines, menu counters and cart cleanup commit in one transaction
  6. A new_order event goes to the restaurant topic after commit

Status changes go through the transition table and notify the customer.
The storage handle and the publisher are injected; nothing here reads
process-wide state.
"""
import logging
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from marketplace.core.access import Caller, Role, check_capability
from marketplace.core.errors import (
    Conflict,
    Internal,
    InvalidInput,
    NotFound,
    Unauthorized,
    Unavailable,
)
from marketplace.core.pricing import PricedLine, compute_totals
from marketplace.db import cart_ops, catalog_ops
from marketplace.models.catalog import Restaurant
from marketplace.models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from marketplace.models.user import User
from marketplace.notifications.publisher import (
    NEW_ORDER,
    ORDER_STATUS_CHANGED,
    Publisher,
    restaurant_topic,
    user_topic,
)
from marketplace.schemas.order import OrderCreateRequest
from marketplace.workflow.transitions import ensure_transition

logger = logging.getLogger(__name__)

# First attempt plus one retry with a fresh number
ORDER_NUMBER_ATTEMPTS = 2

ALL_ROLES = (Role.CUSTOMER, Role.COOK, Role.ADMIN)


def generate_order_number(prefix: str = "ORD") -> str:
    """
    ORD-<yymmdd>-<hhmmss>-<4 random digits>. Readable and practically
    unique; a collision shows up as a unique-constraint failure on insert.
    """
    now = datetime.now(tz=timezone.utc)
    return f"{prefix}-{now:%y%m%d}-{now:%H%M%S}-{random.randint(0, 9999):04d}"


def _is_order_number_collision(exc: IntegrityError) -> bool:
    return "order_number" in str(exc.orig)


class OrderWorkflow:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: Publisher,
        *,
        tax_rate: Decimal = Decimal("0.05"),
        delivery_estimate_minutes: int = 45,
        order_number_factory: Callable[[], str] = generate_order_number,
        max_page_size: int = 100,
    ):
        self._session_factory = session_factory
        self._publisher = publisher
        self._tax_rate = Decimal(str(tax_rate))
        self._delivery_estimate = timedelta(minutes=delivery_estimate_minutes)
        self._order_number_factory = order_number_factory
        self._max_page_size = max_page_size

    # ── Creation ──────────────────────────────────────────────────────────────

    async def create_order(self, caller: Caller, request: OrderCreateRequest) -> Order:
        check_capability(caller, [Role.CUSTOMER], message="Only customers can place orders.")
        if not request.items:
            raise InvalidInput("Order items are required.")

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_number = self._order_number_factory()
            try:
                order, customer_name = await self._place_order(caller, request, order_number)
                break
            except IntegrityError as exc:
                if not _is_order_number_collision(exc):
                    logger.exception("Order insert failed for customer %s", caller.user_id)
                    raise Internal("Order could not be saved.") from exc
                if attempt == ORDER_NUMBER_ATTEMPTS:
                    raise Conflict("Could not allocate a unique order number. Please retry.") from exc
                logger.warning("Order number %s already taken, retrying with a fresh one", order_number)
            except SQLAlchemyError as exc:
                logger.exception("Order transaction failed for customer %s", caller.user_id)
                raise Internal("Order could not be saved.") from exc

        await self._dispatch(
            restaurant_topic(order.restaurant_id),
            {
                "event": NEW_ORDER,
                "order_id": order.id,
                "order_number": order.order_number,
                "customer_name": customer_name,
                "final_amount": str(order.final_amount),
                "item_count": order.item_count,
            },
        )
        return order

    async def _place_order(
        self, caller: Caller, request: OrderCreateRequest, order_number: str
    ) -> tuple[Order, str]:
        async with self._session_factory() as session:
            async with session.begin():
                customer = await session.get(User, caller.user_id)
                if customer is None or not customer.is_active:
                    raise Unauthorized("Customer account not found or inactive.")

                restaurant = await catalog_ops.get_restaurant(session, request.restaurant_id)

                # ── Validate every line before the first write ───────────────
                resolved = []
                for line in request.items:
                    item = await catalog_ops.get_menu_item(session, restaurant.id, line.menu_item_id)
                    if not item.is_available:
                        raise Unavailable(f'Menu item "{item.name}" is not available.')
                    resolved.append((line, item))

                totals = compute_totals(
                    [PricedLine(unit_price=item.price, quantity=line.quantity) for line, item in resolved],
                    delivery_fee=restaurant.delivery_fee,
                    tax_rate=self._tax_rate,
                )

                # ── Persist order, lines, counters and cart cleanup ──────────
                order = Order(
                    customer_id=customer.id,
                    restaurant_id=restaurant.id,
                    order_number=order_number,
                    status=OrderStatus.PENDING,
                    total_amount=totals.subtotal,
                    delivery_fee=totals.delivery_fee,
                    tax_amount=totals.tax_amount,
                    discount_amount=totals.discount_amount,
                    final_amount=totals.final_amount,
                    payment_method=request.payment_method,
                    payment_status=PaymentStatus.PENDING,
                    delivery_address=request.delivery_address.model_dump(mode="json"),
                    special_instructions=request.special_instructions,
                    estimated_delivery_time=datetime.now(tz=timezone.utc) + self._delivery_estimate,
                    items=[
                        OrderItem(
                            menu_item=item,
                            quantity=line.quantity,
                            unit_price=item.price,
                            total_price=PricedLine(item.price, line.quantity).line_total,
                            special_requests=line.special_requests,
                        )
                        for line, item in resolved
                    ],
                )
                session.add(order)
                await session.flush()

                for line, item in resolved:
                    await catalog_ops.increment_total_orders(session, item.id, line.quantity)

                cleared = await cart_ops.clear_cart(session, customer.id, restaurant.id)
                customer_name = customer.display_name

        logger.info(
            "Order %s placed: customer=%s restaurant=%s final=%s cart_entries_cleared=%s",
            order.order_number, order.customer_id, order.restaurant_id, order.final_amount, cleared,
        )
        return order, customer_name

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def list_orders(
        self,
        caller: Caller,
        *,
        status: OrderStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Order], int]:
        """Orders visible to the caller, newest first, with the unpaged total."""
        check_capability(caller, ALL_ROLES)
        if page < 1 or not 1 <= page_size <= self._max_page_size:
            raise InvalidInput(f"page must be >= 1 and page size between 1 and {self._max_page_size}.")

        conditions = []
        if caller.role is Role.CUSTOMER:
            conditions.append(Order.customer_id == caller.user_id)
        elif caller.role is Role.COOK:
            operated = select(Restaurant.id).where(Restaurant.cook_id == caller.user_id)
            conditions.append(Order.restaurant_id.in_(operated))
        if status is not None:
            conditions.append(Order.status == status)

        async with self._session_factory() as session:
            total = (
                await session.execute(select(func.count()).select_from(Order).where(*conditions))
            ).scalar_one()
            result = await session.execute(
                select(Order)
                .where(*conditions)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .limit(page_size)
                .offset((page - 1) * page_size)
            )
            return list(result.scalars().all()), total

    async def get_order(self, caller: Caller, order_id: int) -> Order:
        """Order with its lines. Existing-but-invisible orders raise Unauthorized."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Order)
                .where(Order.id == order_id)
                .options(selectinload(Order.items).selectinload(OrderItem.menu_item))
            )
            order = result.scalar_one_or_none()
            if order is None:
                raise NotFound("Order not found.")

            restaurant = await session.get(Restaurant, order.restaurant_id)
            check_capability(
                caller,
                ALL_ROLES,
                customer_id=order.customer_id,
                operator_id=restaurant.cook_id,
                message="Unauthorized to view this order.",
            )
            return order

    # ── Status transitions ───────────────────────────────────────────────────

    async def transition_status(self, caller: Caller, order_id: int, target: OrderStatus) -> Order:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    order = (
                        await session.execute(select(Order).where(Order.id == order_id))
                    ).scalar_one_or_none()
                    if order is None:
                        raise NotFound("Order not found.")

                    restaurant = await session.get(Restaurant, order.restaurant_id)
                    check_capability(
                        caller,
                        [Role.COOK, Role.ADMIN],
                        operator_id=restaurant.cook_id,
                        message="Unauthorized to update this order.",
                    )
                    previous = order.status
                    ensure_transition(previous, target)

                    order.status = target
                    if target is OrderStatus.DELIVERED:
                        order.delivered_at = datetime.now(tz=timezone.utc)
                        # Cash is collected by the courier on delivery
                        if (
                            order.payment_method is PaymentMethod.CASH
                            and order.payment_status is PaymentStatus.PENDING
                        ):
                            order.payment_status = PaymentStatus.PAID
        except SQLAlchemyError as exc:
            logger.exception("Status update failed for order %s", order_id)
            raise Internal("Order status could not be saved.") from exc

        logger.info(
            "Order %s: %s -> %s by %s %s",
            order.order_number, previous.value, target.value, caller.role.value, caller.user_id,
        )
        await self._dispatch(
            user_topic(order.customer_id),
            {
                "event": ORDER_STATUS_CHANGED,
                "order_id": order.id,
                "order_number": order.order_number,
                "status": target.value,
            },
        )
        return order

    # ── Notifications ─────────────────────────────────────────────────────────

    async def _dispatch(self, topic: str, payload: dict[str, Any]) -> None:
        try:
            await self._publisher.publish(topic, payload)
        except Exception as exc:
            # Order success is defined by the committed rows, not by delivery
            logger.warning("Notification to %s dropped: %s", topic, exc)
