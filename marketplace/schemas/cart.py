"""
Marketplace API — Cart schemas
"""
from decimal import Decimal

from pydantic import BaseModel, Field


class CartAddRequest(BaseModel):
    menu_item_id: int = Field(..., ge=1)
    quantity: int = Field(1, ge=1, le=99)
    special_requests: str | None = Field(None, max_length=500)


class CartEntryResponse(BaseModel):
    id: int
    menu_item_id: int
    restaurant_id: int
    name: str
    price: Decimal
    is_available: bool
    quantity: int
    special_requests: str | None = None
