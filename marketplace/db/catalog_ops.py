"""
Marketplace API — Catalog store

Restaurant and menu lookups used by the order workflow, plus the menu
management operations exposed to restaurant operators.
"""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.access import Role
from marketplace.core.errors import InvalidInput, NotFound
from marketplace.models.catalog import Category, MenuItem, Restaurant
from marketplace.models.user import User

logger = logging.getLogger(__name__)


async def get_restaurant(db: AsyncSession, restaurant_id: int, *, active_only: bool = True) -> Restaurant:
    query = select(Restaurant).where(Restaurant.id == restaurant_id)
    if active_only:
        query = query.where(Restaurant.is_active.is_(True))
    restaurant = (await db.execute(query)).scalar_one_or_none()
    if restaurant is None:
        raise NotFound("Restaurant not found or inactive.")
    return restaurant


async def get_menu_item(db: AsyncSession, restaurant_id: int, menu_item_id: int) -> MenuItem:
    """Resolve a menu item only within the given restaurant."""
    result = await db.execute(
        select(MenuItem).where(MenuItem.id == menu_item_id, MenuItem.restaurant_id == restaurant_id)
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFound(f"Menu item {menu_item_id} not found.")
    return item


async def restaurant_ids_for_cook(db: AsyncSession, cook_id: int) -> list[int]:
    result = await db.execute(select(Restaurant.id).where(Restaurant.cook_id == cook_id).order_by(Restaurant.id))
    return list(result.scalars().all())


async def increment_total_orders(db: AsyncSession, menu_item_id: int, delta: int) -> None:
    # Relative update so concurrent orders for the same item commute
    await db.execute(
        update(MenuItem)
        .where(MenuItem.id == menu_item_id)
        .values(total_orders=MenuItem.total_orders + delta)
        .execution_options(synchronize_session=False)
    )


# ─── Listings ─────────────────────────────────────────────────────────────────

async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(
        select(Category).where(Category.is_active.is_(True)).order_by(Category.sort_order, Category.id)
    )
    return list(result.scalars().all())


async def list_restaurants(
    db: AsyncSession,
    *,
    cuisine: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Restaurant], int]:
    conditions = [Restaurant.is_active.is_(True)]
    if cuisine:
        conditions.append(Restaurant.cuisine_type == cuisine)

    total = (await db.execute(select(func.count()).select_from(Restaurant).where(*conditions))).scalar_one()
    result = await db.execute(
        select(Restaurant)
        .where(*conditions)
        .order_by(Restaurant.name, Restaurant.id)
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    return list(result.scalars().all()), total


async def list_menu(
    db: AsyncSession,
    restaurant_id: int,
    *,
    category_id: int | None = None,
    vegetarian: bool | None = None,
    include_unavailable: bool = False,
) -> list[MenuItem]:
    query = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
    if not include_unavailable:
        query = query.where(MenuItem.is_available.is_(True))
    if category_id is not None:
        query = query.where(MenuItem.category_id == category_id)
    if vegetarian is not None:
        query = query.where(MenuItem.is_vegetarian.is_(vegetarian))
    result = await db.execute(query.order_by(MenuItem.category_id, MenuItem.name))
    return list(result.scalars().all())


# ─── Menu management ──────────────────────────────────────────────────────────

async def get_active_cook(db: AsyncSession, user_id: int) -> User:
    """The user an administrator names as a restaurant's operator."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found.")
    if user.role is not Role.COOK or not user.is_active:
        raise InvalidInput(f"User {user_id} is not an active cook.")
    return user


async def create_restaurant(db: AsyncSession, cook_id: int, **fields) -> Restaurant:
    restaurant = Restaurant(cook_id=cook_id, **fields)
    db.add(restaurant)
    await db.commit()
    logger.info("Restaurant %s created for cook %s", restaurant.id, cook_id)
    return restaurant


async def create_menu_item(db: AsyncSession, restaurant_id: int, **fields) -> MenuItem:
    item = MenuItem(restaurant_id=restaurant_id, **fields)
    db.add(item)
    await db.commit()
    return item


async def update_menu_item(db: AsyncSession, item: MenuItem, changes: dict) -> MenuItem:
    """Apply a partial update. Prices already captured on order lines are untouched."""
    for field, value in changes.items():
        setattr(item, field, value)
    await db.commit()
    return item
