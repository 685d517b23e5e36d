"""
Module: storefront_kernel.models.payment
Responsibility: ORM persistence for payment attempts and the payment status
    state machine.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Status changes follow PAYMENT_TRANSITIONS.  SUCCEEDED, FAILED and
      CANCELLED are terminal; confirming a terminal payment is rejected.
    - Many payments may exist per order (retries).  Only a transition into
      SUCCEEDED moves the order forward (pending -> processing).
    - amount is copied from Order.total_amount at creation.
"""

from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront_kernel.db.base import TimestampedBase, UUIDString


class PaymentStatus(str, Enum):
    """
    Lifecycle status of a payment attempt.

    State machine:
        PENDING -> REQUIRES_ACTION | SUCCEEDED | FAILED | CANCELLED
        REQUIRES_ACTION -> SUCCEEDED | FAILED | CANCELLED
        SUCCEEDED, FAILED, CANCELLED: terminal
    """

    PENDING = "pending"
    REQUIRES_ACTION = "requires_action"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.REQUIRES_ACTION,
        PaymentStatus.SUCCEEDED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.REQUIRES_ACTION: frozenset({
        PaymentStatus.SUCCEEDED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    }),
    # Terminal states
    PaymentStatus.SUCCEEDED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
}

TERMINAL_PAYMENT_STATUSES: frozenset[PaymentStatus] = frozenset({
    PaymentStatus.SUCCEEDED,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
})


class Payment(TimestampedBase):
    """
    A single payment attempt against an order.

    Contract:
        Created by PaymentTracker in PENDING.  The provider adapter may attach
        provider_payment_id once.  All later changes are status transitions.
    """

    __tablename__ = "payments"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'requires_action', 'succeeded', 'failed', 'cancelled')",
            name="ck_payments_valid_status",
        ),
        Index("idx_payments_order_id", "order_id"),
        Index("idx_payments_user_id", "user_id"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # 'mock' | 'stripe' | 'mtn_momo' | ...
    provider: Mapped[str] = mapped_column(String(50), nullable=False)

    provider_payment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="GHS")

    status: Mapped[str] = mapped_column(
        String(30),
        default=PaymentStatus.PENDING.value,
        nullable=False,
    )

    # Arbitrary provider payload ("metadata" is reserved on declarative classes)
    provider_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.provider} status={self.status} amount={self.amount}>"

    @property
    def status_enum(self) -> PaymentStatus:
        return PaymentStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status_enum in TERMINAL_PAYMENT_STATUSES
