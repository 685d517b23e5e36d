"""Pure domain layer: clock, DTOs and input normalization."""

from storefront_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from storefront_kernel.domain.dtos import (
    CartLineView,
    LineItemRequest,
    OrderItemView,
    OrderReceipt,
    OrderStatusChangeRecord,
    OrderView,
    PaymentIntent,
    PaymentView,
    RoleChangeRecord,
    StockChangeRecord,
)
from storefront_kernel.domain.order_lines import (
    normalize_line_items,
    normalize_shipping_address,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CartLineView",
    "LineItemRequest",
    "OrderItemView",
    "OrderReceipt",
    "OrderStatusChangeRecord",
    "OrderView",
    "PaymentIntent",
    "PaymentView",
    "RoleChangeRecord",
    "StockChangeRecord",
    "normalize_line_items",
    "normalize_shipping_address",
]
