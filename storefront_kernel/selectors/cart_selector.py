"""
Module: storefront_kernel.selectors.cart_selector
Responsibility: Read access to a user's cart with current catalog name and
    price (cart lines are not price snapshots).
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from storefront_kernel.domain.dtos import CartLineView
from storefront_kernel.models.cart import CartItem
from storefront_kernel.selectors.base import BaseSelector


class CartSelector(BaseSelector[CartItem]):
    """Read-only queries over cart items."""

    def lines(self, user_id: UUID) -> list[CartLineView]:
        rows = self.session.execute(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.added_at, CartItem.id)
        ).scalars().all()
        return [CartLineView.from_model(item) for item in rows]
