"""
Marketplace API — Catalog routes (categories, restaurants, menus)
"""
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_caller, get_db
from marketplace.core.access import Caller, Role, check_capability
from marketplace.core.errors import InvalidInput
from marketplace.db import catalog_ops
from marketplace.schemas.catalog import (
    CategoryResponse,
    MenuItemCreateRequest,
    MenuItemResponse,
    MenuItemUpdateRequest,
    RestaurantCreateRequest,
    RestaurantResponse,
)

router = APIRouter(tags=["catalog"])


class RestaurantListResponse(BaseModel):
    restaurants: list[RestaurantResponse]
    total_count: int


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await catalog_ops.list_categories(db)


@router.get("/restaurants", response_model=RestaurantListResponse)
async def list_restaurants(
    cuisine: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    restaurants, total = await catalog_ops.list_restaurants(db, cuisine=cuisine, page=page, page_size=limit)
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.model_validate(r) for r in restaurants],
        total_count=total,
    )


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(restaurant_id: int, db: AsyncSession = Depends(get_db)):
    return await catalog_ops.get_restaurant(db, restaurant_id)


@router.get("/restaurants/{restaurant_id}/menu", response_model=list[MenuItemResponse])
async def get_menu(
    restaurant_id: int,
    category_id: int | None = Query(None),
    vegetarian: bool | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Available menu items of an active restaurant."""
    await catalog_ops.get_restaurant(db, restaurant_id)
    return await catalog_ops.list_menu(db, restaurant_id, category_id=category_id, vegetarian=vegetarian)


@router.post("/restaurants", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    payload: RestaurantCreateRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    check_capability(caller, [Role.COOK, Role.ADMIN], message="Only cooks can open restaurants.")
    if caller.is_admin:
        if payload.cook_id is None:
            raise InvalidInput("cook_id is required when an administrator creates a restaurant.")
        cook_id = (await catalog_ops.get_active_cook(db, payload.cook_id)).id
    else:
        cook_id = caller.user_id

    fields = payload.model_dump(exclude={"cook_id", "opening_hours"})
    if payload.opening_hours is not None:
        fields["opening_hours"] = [h.model_dump(mode="json") for h in payload.opening_hours]
    return await catalog_ops.create_restaurant(db, cook_id, **fields)


@router.post(
    "/restaurants/{restaurant_id}/menu-items",
    response_model=MenuItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_menu_item(
    restaurant_id: int,
    payload: MenuItemCreateRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await catalog_ops.get_restaurant(db, restaurant_id, active_only=False)
    check_capability(
        caller, [Role.COOK, Role.ADMIN], operator_id=restaurant.cook_id,
        message="Unauthorized to manage this restaurant's menu.",
    )
    return await catalog_ops.create_menu_item(db, restaurant.id, **payload.model_dump())


@router.patch("/restaurants/{restaurant_id}/menu-items/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    restaurant_id: int,
    item_id: int,
    payload: MenuItemUpdateRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    restaurant = await catalog_ops.get_restaurant(db, restaurant_id, active_only=False)
    check_capability(
        caller, [Role.COOK, Role.ADMIN], operator_id=restaurant.cook_id,
        message="Unauthorized to manage this restaurant's menu.",
    )
    item = await catalog_ops.get_menu_item(db, restaurant.id, item_id)
    return await catalog_ops.update_menu_item(db, item, payload.model_dump(exclude_unset=True))
