"""
Marketplace API — Order schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from marketplace.models.order import OrderStatus, PaymentMethod, PaymentStatus


class DeliveryAddress(BaseModel):
    street: str = Field(..., min_length=1, max_length=255, examples=["221B Baker Street"])
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    state: str | None = Field(None, max_length=100)
    landmark: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=20)


class OrderLineRequest(BaseModel):
    menu_item_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1, le=99)
    special_requests: str | None = Field(None, max_length=500)


class OrderCreateRequest(BaseModel):
    restaurant_id: int = Field(..., ge=1)
    items: list[OrderLineRequest] = Field(..., min_length=1, max_length=50)
    delivery_address: DeliveryAddress
    payment_method: PaymentMethod
    special_instructions: str | None = Field(None, max_length=1000)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderLineResponse(BaseModel):
    id: int
    menu_item_id: int
    name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    special_requests: str | None = None

    model_config = {"from_attributes": True}


class OrderSummary(BaseModel):
    id: int
    order_number: str
    customer_id: int
    restaurant_id: int
    status: OrderStatus
    total_amount: Decimal
    delivery_fee: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    delivery_address: DeliveryAddress
    special_instructions: str | None = None
    estimated_delivery_time: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderResponse(OrderSummary):
    items: list[OrderLineResponse]


class OrderListResponse(BaseModel):
    orders: list[OrderSummary]
    total_count: int
    current_page: int
    total_pages: int


class StatusChangeResponse(BaseModel):
    order_id: int
    order_number: str
    status: OrderStatus
    message: str = "Order status updated successfully."
