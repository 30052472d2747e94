"""
Marketplace API — Cart store
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.errors import InvalidInput, NotFound, Unavailable
from marketplace.models.cart import CartItem
from marketplace.models.catalog import MenuItem

# Same ceiling as a single order line
MAX_QUANTITY = 99


async def list_cart(db: AsyncSession, customer_id: int) -> list[CartItem]:
    result = await db.execute(
        select(CartItem)
        .where(CartItem.customer_id == customer_id)
        .options(selectinload(CartItem.menu_item))
        .order_by(CartItem.created_at.desc(), CartItem.id.desc())
    )
    return list(result.scalars().all())


async def add_to_cart(
    db: AsyncSession,
    customer_id: int,
    menu_item_id: int,
    quantity: int = 1,
    special_requests: str | None = None,
) -> tuple[CartItem, MenuItem]:
    """Add a menu item, or bump the quantity of the existing entry for it."""
    item = await db.get(MenuItem, menu_item_id)
    if item is None:
        raise NotFound(f"Menu item {menu_item_id} not found.")
    if not item.is_available:
        raise Unavailable(f'Menu item "{item.name}" is not available.')

    result = await db.execute(
        select(CartItem).where(CartItem.customer_id == customer_id, CartItem.menu_item_id == menu_item_id)
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        entry = CartItem(
            customer_id=customer_id,
            menu_item_id=menu_item_id,
            quantity=quantity,
            special_requests=special_requests,
        )
        db.add(entry)
    else:
        if entry.quantity + quantity > MAX_QUANTITY:
            raise InvalidInput(f'Cart quantity for "{item.name}" cannot exceed {MAX_QUANTITY}.')
        entry.quantity = CartItem.quantity + quantity
        if special_requests is not None:
            entry.special_requests = special_requests
    await db.commit()
    await db.refresh(entry, attribute_names=["quantity"])
    return entry, item


async def remove_from_cart(db: AsyncSession, customer_id: int, entry_id: int) -> None:
    result = await db.execute(
        delete(CartItem).where(CartItem.id == entry_id, CartItem.customer_id == customer_id)
    )
    if result.rowcount == 0:
        raise NotFound("Cart entry not found.")
    await db.commit()


async def clear_cart(db: AsyncSession, customer_id: int, restaurant_id: int) -> int:
    """Delete the customer's entries for one restaurant. Does not commit."""
    result = await db.execute(
        delete(CartItem)
        .where(
            CartItem.customer_id == customer_id,
            CartItem.menu_item_id.in_(select(MenuItem.id).where(MenuItem.restaurant_id == restaurant_id)),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
