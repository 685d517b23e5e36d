"""
Module: storefront_kernel.models.order
Responsibility: ORM persistence for order headers and their line items, plus
    the order status state machine.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models only.

Invariants enforced:
    - total_amount == sum(item.quantity * item.unit_price), fixed at creation
      by OrderAssembler and never recomputed.
    - OrderItem rows are immutable once inserted (ORM listener in
      db/immutability.py); unit_price is a value copy, never a join.
    - Status changes driven by events follow ORDER_TRANSITIONS.  The
      administrative override (OrderAssembler.update_order_status) only
      requires the target to be an enumerated status.
    - (user_id, idempotency_key) is unique, so a retried create returns the
      first order instead of creating a second one.

Failure modes:
    - IntegrityError on duplicate (user_id, idempotency_key) when two
      different requests race with the same key.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront_kernel.db.base import Base, UUIDString, utcnow

if TYPE_CHECKING:
    from storefront_kernel.models.product import Product


class OrderStatus(str, Enum):
    """
    Lifecycle status of an order.

    State machine:
        PENDING -> PROCESSING -> SHIPPED -> DELIVERED
        PENDING | PROCESSING -> CANCELLED
        DELIVERED: terminal
        CANCELLED: terminal
    """

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ORDER_STATUSES: tuple[str, ...] = tuple(s.value for s in OrderStatus)

# Allowed state transitions (from -> set of valid targets)
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.PROCESSING, OrderStatus.CANCELLED,
    }),
    OrderStatus.PROCESSING: frozenset({
        OrderStatus.SHIPPED, OrderStatus.CANCELLED,
    }),
    OrderStatus.SHIPPED: frozenset({
        OrderStatus.DELIVERED,
    }),
    # Terminal states
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_ORDER_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})


def can_transition_order(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """True if ``current -> target`` is an edge of ORDER_TRANSITIONS."""
    return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]


class Order(Base):
    """
    Order header.

    Contract:
        Created only by OrderAssembler together with all of its items, in
        one transaction.  Afterwards only ``status`` may change.
    """

    __tablename__ = "orders"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')",
            name="ck_orders_valid_status",
        ),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency_key"),
        Index("idx_orders_user_created", "user_id", "created_at"),
    )

    user_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=OrderStatus.PENDING.value,
        nullable=False,
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )

    shipping_address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    # Client-supplied retry key, unique per user
    idempotency_key: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        order_by="OrderItem.line_number",
        lazy="selectin",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Order {self.id} status={self.status} total={self.total_amount}>"

    @property
    def status_enum(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def items_total(self) -> Decimal:
        """Sum of the item snapshots; equals total_amount for every valid order."""
        return sum((item.line_total for item in self.items), Decimal("0"))


class OrderItem(Base):
    """
    One line of an order with its price snapshot.

    Contract:
        Immutable after insert.  product_id is nulled by the database if the
        product is later deleted; quantity and unit_price survive.
    """

    __tablename__ = "order_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        UniqueConstraint("order_id", "line_number", name="uq_order_items_order_line"),
        Index("idx_order_items_order", "order_id"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    product_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )

    # 1-based position within the order, in request order
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Price as charged, copied from the catalog at purchase time
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    order: Mapped[Order] = relationship(back_populates="items")

    product: Mapped["Product | None"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<OrderItem product={self.product_id} qty={self.quantity} @ {self.unit_price}>"

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price) * self.quantity
