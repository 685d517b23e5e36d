"""
Module: storefront_kernel.selectors.order_selector
Responsibility: Read access to orders with hydrated items.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Lists are newest first (created_at DESC, id DESC as tie-break).
    - Item product names come from a left join; a deleted product yields
      product_name None while quantity and unit_price survive.
"""

from uuid import UUID

from sqlalchemy import select

from storefront_kernel.domain.dtos import OrderView
from storefront_kernel.models.order import Order
from storefront_kernel.selectors.base import BaseSelector


class OrderSelector(BaseSelector[Order]):
    """Read-only queries over orders."""

    def get(self, order_id: UUID) -> OrderView | None:
        order = self.session.get(Order, order_id)
        return OrderView.from_model(order) if order is not None else None

    def get_for_user(self, order_id: UUID, user_id: UUID) -> OrderView | None:
        """The order, only if it belongs to ``user_id``."""
        order = self.session.execute(
            select(Order).where(Order.id == order_id, Order.user_id == user_id)
        ).scalar_one_or_none()
        return OrderView.from_model(order) if order is not None else None

    def by_user(self, user_id: UUID) -> list[OrderView]:
        rows = self.session.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all()
        return [OrderView.from_model(order) for order in rows]

    def all(self) -> list[OrderView]:
        rows = self.session.execute(
            select(Order).order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all()
        return [OrderView.from_model(order) for order in rows]

    def by_idempotency_key(self, user_id: UUID, key: str) -> OrderView | None:
        order = self.session.execute(
            select(Order).where(
                Order.user_id == user_id,
                Order.idempotency_key == key,
            )
        ).scalar_one_or_none()
        return OrderView.from_model(order) if order is not None else None
