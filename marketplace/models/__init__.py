from marketplace.models.user import User
from marketplace.models.catalog import Category, Restaurant, MenuItem
from marketplace.models.cart import CartItem
from marketplace.models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus

__all__ = [
    "User",
    "Category",
    "Restaurant",
    "MenuItem",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
]
