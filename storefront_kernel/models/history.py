"""
Module: storefront_kernel.models.history
Responsibility: ORM persistence for the append-only audit history of
    privileged mutations: role changes, stock changes, order status changes.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: no UPDATE or DELETE through the ORM (listeners in
      db/immutability.py).  AuditRecorder exposes inserts only.
    - Exactly one row per real change; previous == new is never recorded.
    - Subject ids are plain columns, not foreign keys, so history survives
      the deletion of the product, user or order it describes.

Audit relevance:
    These tables ARE the audit trail.  Each row names the subject, the value
    before, the value after, the actor (None for system-driven changes such
    as a payment confirmation), and when it happened.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront_kernel.db.base import Base, UUIDString, utcnow


class RoleHistory(Base):
    """One role change of one user."""

    __tablename__ = "user_role_history"

    __table_args__ = (
        Index("idx_role_history_user", "user_id", "changed_at"),
    )

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    previous_role: Mapped[str] = mapped_column(String(20), nullable=False)
    new_role: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False,
    )

    def __repr__(self) -> str:
        return f"<RoleHistory {self.user_id}: {self.previous_role} -> {self.new_role}>"


class StockHistory(Base):
    """One stock change of one product."""

    __tablename__ = "product_stock_history"

    __table_args__ = (
        Index("idx_stock_history_product", "product_id", "changed_at"),
    )

    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    previous_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    new_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    # e.g. "adjustment", "reset", "order:<id>", "order_cancelled:<id>"
    reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    changed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False,
    )

    @property
    def delta(self) -> int:
        return self.new_stock - self.previous_stock

    def __repr__(self) -> str:
        return f"<StockHistory {self.product_id}: {self.previous_stock} -> {self.new_stock}>"


class OrderStatusHistory(Base):
    """One status change of one order."""

    __tablename__ = "order_status_history"

    __table_args__ = (
        Index("idx_order_status_history_order", "order_id", "changed_at"),
    )

    order_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    previous_status: Mapped[str] = mapped_column(String(50), nullable=False)
    new_status: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False,
    )

    def __repr__(self) -> str:
        return f"<OrderStatusHistory {self.order_id}: {self.previous_status} -> {self.new_status}>"


HISTORY_MODELS: tuple[type[Base], ...] = (RoleHistory, StockHistory, OrderStatusHistory)
