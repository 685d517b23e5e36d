"""Read-only selectors returning frozen DTOs."""

from storefront_kernel.selectors.cart_selector import CartSelector
from storefront_kernel.selectors.history_selector import HistorySelector
from storefront_kernel.selectors.order_selector import OrderSelector
from storefront_kernel.selectors.payment_selector import PaymentSelector

__all__ = ["CartSelector", "HistorySelector", "OrderSelector", "PaymentSelector"]
