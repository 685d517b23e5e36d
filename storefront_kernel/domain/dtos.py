"""
DTOs -- immutable views handed out of the kernel.

Responsibility:
    Frozen dataclasses for line-item requests, order/payment/cart views and
    history records.  Callers outside a unit of work never hold live ORM
    entities.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``from_model()`` class methods are
    boundary converters invoked only from services and selectors.

Invariants enforced:
    - OrderView.items carry the price snapshot (unit_price) recorded at
      purchase time; the catalog price is never consulted.
    - OrderItemView.product_name is None once the product has been deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from storefront_kernel.models.cart import CartItem
    from storefront_kernel.models.history import (
        OrderStatusHistory,
        RoleHistory,
        StockHistory,
    )
    from storefront_kernel.models.order import Order, OrderItem
    from storefront_kernel.models.payment import Payment


@dataclass(frozen=True)
class LineItemRequest:
    """One requested order line: a product and a positive quantity."""

    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class OrderItemView:
    id: UUID
    line_number: int
    product_id: UUID | None
    product_name: str | None
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_model(cls, model: OrderItem) -> OrderItemView:
        return cls(
            id=model.id,
            line_number=model.line_number,
            product_id=model.product_id,
            product_name=model.product.name if model.product is not None else None,
            quantity=model.quantity,
            unit_price=Decimal(model.unit_price),
        )


@dataclass(frozen=True)
class OrderView:
    """An order header with its hydrated items."""

    id: UUID
    user_id: UUID | None
    status: str
    total_amount: Decimal
    shipping_address: dict[str, Any] | None
    created_at: datetime
    items: tuple[OrderItemView, ...] = field(default_factory=tuple)

    @property
    def items_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @classmethod
    def from_model(cls, model: Order) -> OrderView:
        return cls(
            id=model.id,
            user_id=model.user_id,
            status=model.status,
            total_amount=Decimal(model.total_amount),
            shipping_address=dict(model.shipping_address) if model.shipping_address else None,
            created_at=model.created_at,
            items=tuple(OrderItemView.from_model(item) for item in model.items),
        )


@dataclass(frozen=True)
class OrderReceipt:
    """
    Result of create_order.

    ``replayed`` is True when the idempotency key matched an existing order
    and nothing was written.
    """

    order: OrderView
    replayed: bool = False

    @property
    def total_amount(self) -> Decimal:
        return self.order.total_amount


@dataclass(frozen=True)
class PaymentView:
    id: UUID
    order_id: UUID
    user_id: UUID
    provider: str
    provider_payment_id: str | None
    amount: Decimal
    currency: str
    status: str
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, model: Payment) -> PaymentView:
        return cls(
            id=model.id,
            order_id=model.order_id,
            user_id=model.user_id,
            provider=model.provider,
            provider_payment_id=model.provider_payment_id,
            amount=Decimal(model.amount),
            currency=model.currency,
            status=model.status,
            metadata=dict(model.provider_metadata or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


@dataclass(frozen=True)
class PaymentIntent:
    """A freshly created payment plus the secret the client confirms with."""

    payment: PaymentView
    client_secret: str


@dataclass(frozen=True)
class CartLineView:
    id: UUID
    product_id: UUID
    name: str
    price: Decimal
    quantity: int
    added_at: datetime

    @classmethod
    def from_model(cls, model: CartItem) -> CartLineView:
        return cls(
            id=model.id,
            product_id=model.product_id,
            name=model.product.name,
            price=Decimal(model.product.price),
            quantity=model.quantity,
            added_at=model.added_at,
        )


@dataclass(frozen=True)
class RoleChangeRecord:
    id: UUID
    user_id: UUID
    previous_role: str
    new_role: str
    changed_by: UUID | None
    changed_at: datetime

    @classmethod
    def from_model(cls, model: RoleHistory) -> RoleChangeRecord:
        return cls(
            id=model.id,
            user_id=model.user_id,
            previous_role=model.previous_role,
            new_role=model.new_role,
            changed_by=model.changed_by,
            changed_at=model.changed_at,
        )


@dataclass(frozen=True)
class StockChangeRecord:
    id: UUID
    product_id: UUID
    previous_stock: int
    new_stock: int
    reason: str | None
    changed_by: UUID | None
    changed_at: datetime

    @property
    def delta(self) -> int:
        return self.new_stock - self.previous_stock

    @classmethod
    def from_model(cls, model: StockHistory) -> StockChangeRecord:
        return cls(
            id=model.id,
            product_id=model.product_id,
            previous_stock=model.previous_stock,
            new_stock=model.new_stock,
            reason=model.reason,
            changed_by=model.changed_by,
            changed_at=model.changed_at,
        )


@dataclass(frozen=True)
class OrderStatusChangeRecord:
    id: UUID
    order_id: UUID
    previous_status: str
    new_status: str
    changed_by: UUID | None
    changed_at: datetime

    @classmethod
    def from_model(cls, model: OrderStatusHistory) -> OrderStatusChangeRecord:
        return cls(
            id=model.id,
            order_id=model.order_id,
            previous_status=model.previous_status,
            new_status=model.new_status,
            changed_by=model.changed_by,
            changed_at=model.changed_at,
        )
