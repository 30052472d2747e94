"""
Shared fixtures: a throwaway SQLite database per test, seeded catalog,
a recording publisher instead of Redis, and an ASGI test client.
"""
import os

# Settings are read once at import time; pin the test environment first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from dataclasses import dataclass
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from marketplace.core.access import Caller, Role
from marketplace.core.security import hash_password, issue_access_token
from marketplace.db.database import build_engine, build_session_factory, create_schema
from marketplace.main import create_app
from marketplace.models import CartItem, MenuItem, Restaurant, User
from marketplace.schemas.order import DeliveryAddress, OrderCreateRequest, OrderLineRequest
from marketplace.workflow.orders import OrderWorkflow


class RecordingPublisher:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def publish(self, topic: str, payload: dict) -> None:
        self.events.append((topic, payload))

    def on(self, topic: str) -> list[dict]:
        return [payload for t, payload in self.events if t == topic]


class BrokenPublisher:
    async def publish(self, topic: str, payload: dict) -> None:
        raise ConnectionError("redis is down")


@dataclass
class Seed:
    admin: Caller
    cook: Caller
    other_cook: Caller
    customer: Caller
    other_customer: Caller
    restaurant_id: int
    other_restaurant_id: int
    closed_restaurant_id: int
    item_a_id: int  # 10.00
    item_b_id: int  # 5.00
    sold_out_id: int
    other_item_id: int  # belongs to other_restaurant


def auth_headers(caller: Caller) -> dict[str, str]:
    token = issue_access_token(caller.user_id, caller.role, caller.display_name)
    return {"Authorization": f"Bearer {token}"}


def order_request(restaurant_id: int, lines: list[tuple[int, int]], payment_method: str = "card") -> OrderCreateRequest:
    return OrderCreateRequest(
        restaurant_id=restaurant_id,
        items=[OrderLineRequest(menu_item_id=item_id, quantity=qty) for item_id, qty in lines],
        delivery_address=DeliveryAddress(street="12 Market Lane", city="Springfield", postal_code="49007"),
        payment_method=payment_method,
        special_instructions="Ring twice",
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def workflow(session_factory, publisher):
    return OrderWorkflow(session_factory, publisher, tax_rate=Decimal("0.05"), delivery_estimate_minutes=45)


@pytest_asyncio.fixture
async def seed(session_factory) -> Seed:
    password = hash_password("password")

    def user(email, first, role):
        return User(email=email, password_hash=password, first_name=first, last_name="Demo", role=role)

    async with session_factory() as db:
        admin = user("admin@marketplace.io", "Admin", Role.ADMIN)
        cook = user("cook@marketplace.io", "Cook", Role.COOK)
        other_cook = user("cook2@marketplace.io", "Rival", Role.COOK)
        customer = user("customer@marketplace.io", "Casey", Role.CUSTOMER)
        other_customer = user("customer2@marketplace.io", "Jordan", Role.CUSTOMER)
        db.add_all([admin, cook, other_cook, customer, other_customer])
        await db.flush()

        restaurant = Restaurant(cook_id=cook.id, name="Demo Kitchen", phone="+1234567890",
                                cuisine_type="Multi-cuisine", delivery_fee=Decimal("2.50"))
        other_restaurant = Restaurant(cook_id=other_cook.id, name="Rival Grill", phone="+1234567899",
                                      delivery_fee=Decimal("1.00"))
        closed = Restaurant(cook_id=cook.id, name="Closed Diner", phone="+1234567800", is_active=False)
        db.add_all([restaurant, other_restaurant, closed])
        await db.flush()

        item_a = MenuItem(restaurant_id=restaurant.id, name="Chicken Wings", price=Decimal("10.00"))
        item_b = MenuItem(restaurant_id=restaurant.id, name="Fresh Lemonade", price=Decimal("5.00"))
        sold_out = MenuItem(restaurant_id=restaurant.id, name="Chocolate Cake", price=Decimal("6.99"),
                            is_available=False)
        other_item = MenuItem(restaurant_id=other_restaurant.id, name="Burger", price=Decimal("8.00"))
        db.add_all([item_a, item_b, sold_out, other_item])
        await db.commit()

        return Seed(
            admin=Caller(admin.id, Role.ADMIN, admin.display_name),
            cook=Caller(cook.id, Role.COOK, cook.display_name),
            other_cook=Caller(other_cook.id, Role.COOK, other_cook.display_name),
            customer=Caller(customer.id, Role.CUSTOMER, customer.display_name),
            other_customer=Caller(other_customer.id, Role.CUSTOMER, other_customer.display_name),
            restaurant_id=restaurant.id,
            other_restaurant_id=other_restaurant.id,
            closed_restaurant_id=closed.id,
            item_a_id=item_a.id,
            item_b_id=item_b.id,
            sold_out_id=sold_out.id,
            other_item_id=other_item.id,
        )


@pytest_asyncio.fixture
async def client(engine, publisher):
    app = create_app(engine=engine, publisher=publisher)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def add_cart_entry(session_factory, customer_id: int, menu_item_id: int, quantity: int = 1) -> None:
    async with session_factory() as db:
        db.add(CartItem(customer_id=customer_id, menu_item_id=menu_item_id, quantity=quantity))
        await db.commit()
