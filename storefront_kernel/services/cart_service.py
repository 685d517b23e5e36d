"""
CartService -- the user's pending line items.

Responsibility:
    Add, re-quantify, remove and list cart lines.  The cart is advisory:
    prices shown are current catalog prices and stock is not reserved until
    OrderAssembler.create_order, which also clears the cart.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - One line per (user, product); adding an existing product increases
      its quantity.
    - Quantities are positive integers.
    - A user can only touch its own lines; another user's line is reported
      as not found.
"""

from uuid import UUID

from sqlalchemy import delete, select

from storefront_kernel.domain.dtos import CartLineView
from storefront_kernel.exceptions import (
    CartItemNotFoundError,
    InvalidQuantityError,
    ProductNotFoundError,
    UserNotFoundError,
)
from storefront_kernel.logging_config import get_logger
from storefront_kernel.models.cart import CartItem
from storefront_kernel.models.product import Product
from storefront_kernel.models.user import User
from storefront_kernel.selectors.cart_selector import CartSelector
from storefront_kernel.services.base import BaseService

logger = get_logger("services.cart")


def _check_quantity(product_id, quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(str(product_id), quantity)


class CartService(BaseService[CartItem]):
    """Cart mutations and reads for one session."""

    def add_item(self, user_id: UUID, product_id: UUID, quantity: int) -> CartLineView:
        _check_quantity(product_id, quantity)
        if self.session.get(User, user_id) is None:
            raise UserNotFoundError(str(user_id))
        if self.session.get(Product, product_id) is None:
            raise ProductNotFoundError(str(product_id))

        item = self.session.execute(
            select(CartItem).where(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            )
        ).scalar_one_or_none()

        if item is None:
            item = CartItem(
                user_id=user_id,
                product_id=product_id,
                quantity=quantity,
                added_at=self._clock.now(),
            )
            self.session.add(item)
        else:
            item.quantity += quantity
        self.session.flush()

        logger.info(
            "cart_item_added",
            extra={
                "product_id": str(product_id),
                "quantity": quantity,
                "line_quantity": item.quantity,
            },
        )
        return CartLineView.from_model(item)

    def update_item_quantity(self, user_id: UUID, item_id: UUID, quantity: int) -> CartLineView:
        item = self._owned(user_id, item_id)
        _check_quantity(item.product_id, quantity)
        item.quantity = quantity
        self.session.flush()
        return CartLineView.from_model(item)

    def remove_item(self, user_id: UUID, item_id: UUID) -> CartLineView:
        item = self._owned(user_id, item_id)
        view = CartLineView.from_model(item)
        self.session.delete(item)
        self.session.flush()
        logger.info("cart_item_removed", extra={"product_id": str(view.product_id)})
        return view

    def get_cart(self, user_id: UUID) -> list[CartLineView]:
        return CartSelector(self.session).lines(user_id)

    def clear(self, user_id: UUID) -> int:
        """Delete every line of the user's cart; returns the number removed."""
        removed = self.session.execute(
            delete(CartItem).where(CartItem.user_id == user_id)
        ).rowcount
        self.session.flush()
        return removed

    def _owned(self, user_id: UUID, item_id: UUID) -> CartItem:
        item = self.session.get(CartItem, item_id)
        if item is None or item.user_id != user_id:
            raise CartItemNotFoundError(str(item_id), str(user_id))
        return item
