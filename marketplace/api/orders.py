"""
Marketplace API — Orders routes

Thin HTTP adapter over OrderWorkflow. Validation, authorization, pricing,
persistence and notifications all happen inside the workflow.
"""
import math

from fastapi import APIRouter, Depends, Query, status

from marketplace.api.deps import get_caller, get_workflow
from marketplace.core.access import Caller
from marketplace.models.order import OrderStatus
from marketplace.schemas.order import (
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderSummary,
    StatusChangeResponse,
)
from marketplace.workflow.orders import OrderWorkflow

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreateRequest,
    caller: Caller = Depends(get_caller),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    """Place an order for one restaurant. Customers only."""
    order = await workflow.create_order(caller, payload)
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    order_status: OrderStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    caller: Caller = Depends(get_caller),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    """Orders visible to the caller, newest first."""
    orders, total = await workflow.list_orders(caller, status=order_status, page=page, page_size=limit)
    return OrderListResponse(
        orders=[OrderSummary.model_validate(o) for o in orders],
        total_count=total,
        current_page=page,
        total_pages=math.ceil(total / limit),
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    caller: Caller = Depends(get_caller),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    order = await workflow.get_order(caller, order_id)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/status", response_model=StatusChangeResponse)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    caller: Caller = Depends(get_caller),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    """Move an order along its lifecycle. Restaurant operator or admin only."""
    order = await workflow.transition_status(caller, order_id, payload.status)
    return StatusChangeResponse(order_id=order.id, order_number=order.order_number, status=order.status)
