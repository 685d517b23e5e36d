"""Domain models for the storefront kernel."""

from storefront_kernel.models.cart import CartItem
from storefront_kernel.models.history import (
    HISTORY_MODELS,
    OrderStatusHistory,
    RoleHistory,
    StockHistory,
)
from storefront_kernel.models.order import (
    ORDER_STATUSES,
    ORDER_TRANSITIONS,
    TERMINAL_ORDER_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    can_transition_order,
)
from storefront_kernel.models.payment import (
    PAYMENT_TRANSITIONS,
    TERMINAL_PAYMENT_STATUSES,
    Payment,
    PaymentStatus,
)
from storefront_kernel.models.product import Product
from storefront_kernel.models.user import USER_ROLES, User, UserRole

__all__ = [
    "CartItem",
    "HISTORY_MODELS",
    "OrderStatusHistory",
    "RoleHistory",
    "StockHistory",
    "ORDER_STATUSES",
    "ORDER_TRANSITIONS",
    "TERMINAL_ORDER_STATUSES",
    "Order",
    "OrderItem",
    "OrderStatus",
    "can_transition_order",
    "PAYMENT_TRANSITIONS",
    "TERMINAL_PAYMENT_STATUSES",
    "Payment",
    "PaymentStatus",
    "Product",
    "USER_ROLES",
    "User",
    "UserRole",
]
