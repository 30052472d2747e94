"""
Marketplace API — Catalog schemas
"""
from datetime import time
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class OpeningHours(BaseModel):
    day: Weekday
    opens: time
    closes: time

    @model_validator(mode="after")
    def _closes_after_opens(self):
        if self.closes <= self.opens:
            raise ValueError("closes must be later than opens")
        return self


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    sort_order: int

    model_config = {"from_attributes": True}


class RestaurantCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    cuisine_type: str | None = Field(None, max_length=100)
    phone: str = Field(..., min_length=3, max_length=20)
    email: str | None = Field(None, max_length=255)
    opening_hours: list[OpeningHours] | None = None
    delivery_radius: int = Field(10, ge=1, le=100)
    minimum_order_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    delivery_fee: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    # Only honoured for administrators creating on behalf of a cook
    cook_id: int | None = None


class RestaurantResponse(BaseModel):
    id: int
    cook_id: int
    name: str
    description: str | None = None
    cuisine_type: str | None = None
    phone: str
    email: str | None = None
    is_active: bool
    opening_hours: list[OpeningHours] | None = None
    delivery_radius: int
    minimum_order_amount: Decimal
    delivery_fee: Decimal

    model_config = {"from_attributes": True}


class MenuItemCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category_id: int | None = None
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    is_vegetarian: bool = False
    preparation_time: int = Field(15, ge=1, le=240)
    is_available: bool = True


class MenuItemUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category_id: int | None = None
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    is_vegetarian: bool | None = None
    preparation_time: int | None = Field(None, ge=1, le=240)
    is_available: bool | None = None

    @model_validator(mode="after")
    def _required_columns_not_null(self):
        # description and category_id may be cleared; the rest are NOT NULL columns
        cleared = sorted(
            field for field in self.model_fields_set - {"description", "category_id"}
            if getattr(self, field) is None
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class MenuItemResponse(BaseModel):
    id: int
    restaurant_id: int
    category_id: int | None = None
    name: str
    description: str | None = None
    price: Decimal
    is_vegetarian: bool
    preparation_time: int
    is_available: bool
    total_orders: int

    model_config = {"from_attributes": True}
