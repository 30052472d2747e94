"""
Marketplace API — Cart routes (customers only)
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_caller, get_db
from marketplace.core.access import Caller, Role, check_capability
from marketplace.db import cart_ops
from marketplace.schemas.cart import CartAddRequest, CartEntryResponse

router = APIRouter(prefix="/cart", tags=["cart"])


def _entry_response(entry, item) -> CartEntryResponse:
    return CartEntryResponse(
        id=entry.id,
        menu_item_id=item.id,
        restaurant_id=item.restaurant_id,
        name=item.name,
        price=item.price,
        is_available=item.is_available,
        quantity=entry.quantity,
        special_requests=entry.special_requests,
    )


@router.get("", response_model=list[CartEntryResponse])
async def get_cart(caller: Caller = Depends(get_caller), db: AsyncSession = Depends(get_db)):
    check_capability(caller, [Role.CUSTOMER])
    entries = await cart_ops.list_cart(db, caller.user_id)
    return [_entry_response(e, e.menu_item) for e in entries]


@router.post("", response_model=CartEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    payload: CartAddRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    check_capability(caller, [Role.CUSTOMER])
    entry, item = await cart_ops.add_to_cart(
        db, caller.user_id, payload.menu_item_id, payload.quantity, payload.special_requests
    )
    return _entry_response(entry, item)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_cart(
    entry_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    check_capability(caller, [Role.CUSTOMER])
    await cart_ops.remove_from_cart(db, caller.user_id, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
