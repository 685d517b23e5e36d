"""
Module: storefront_kernel.selectors.history_selector
Responsibility: Read access to the append-only audit history.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Newest first (changed_at DESC).  Rows written in the same instant
      keep no defined relative order beyond id.
"""

from uuid import UUID

from sqlalchemy import select

from storefront_kernel.domain.dtos import (
    OrderStatusChangeRecord,
    RoleChangeRecord,
    StockChangeRecord,
)
from storefront_kernel.models.history import (
    OrderStatusHistory,
    RoleHistory,
    StockHistory,
)
from storefront_kernel.selectors.base import BaseSelector


class HistorySelector(BaseSelector[RoleHistory]):
    """Queries over role, stock and order status history."""

    def role_history(self, user_id: UUID) -> list[RoleChangeRecord]:
        rows = self.session.execute(
            select(RoleHistory)
            .where(RoleHistory.user_id == user_id)
            .order_by(RoleHistory.changed_at.desc(), RoleHistory.id.desc())
        ).scalars().all()
        return [RoleChangeRecord.from_model(r) for r in rows]

    def stock_history(self, product_id: UUID) -> list[StockChangeRecord]:
        rows = self.session.execute(
            select(StockHistory)
            .where(StockHistory.product_id == product_id)
            .order_by(StockHistory.changed_at.desc(), StockHistory.id.desc())
        ).scalars().all()
        return [StockChangeRecord.from_model(r) for r in rows]

    def order_status_history(self, order_id: UUID) -> list[OrderStatusChangeRecord]:
        rows = self.session.execute(
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.changed_at.desc(), OrderStatusHistory.id.desc())
        ).scalars().all()
        return [OrderStatusChangeRecord.from_model(r) for r in rows]
