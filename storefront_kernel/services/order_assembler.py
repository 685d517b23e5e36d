"""
OrderAssembler -- turns requested line items into a committed-ready order.

Responsibility:
    Validates requested items against authoritative catalog price and stock,
    computes the total, persists the order header and its price-snapshot
    lines, reserves stock through the InventoryLedger, and clears the cart.
    Also owns order reads, the administrative status override and
    cancellation.

Architecture position:
    Kernel > Services -- imperative shell.
    Shares one unit of work with InventoryLedger and AuditRecorder; the
    StorefrontOrchestrator commits or rolls back around each call.

Invariants enforced:
    - Authoritative pricing: totals and snapshots use the catalog price read
      under the product lock; client-supplied prices are never accepted.
    - total_amount == sum(quantity * unit_price) over the created items.
    - No partial order: every line is validated (existence, quantity,
      stock) before the first write, and any failure leaves nothing behind
      once the caller rolls back.
    - Locks: all product rows of a request are locked in ascending id order
      before anything is written.
    - Idempotency: a repeated (user, idempotency_key) with the same lines
      returns the existing order untouched; different lines are a conflict.
      The key is looked up after the product locks are held, so a concurrent
      retry with the same items waits and then sees the first order.  A
      concurrent request with other items loses on the unique constraint.
    - Items keep request order through line_number.

Failure modes:
    - EmptyOrderError, InvalidQuantityError, ValidationFailureError (address)
    - UserNotFoundError: the ordering user does not exist.
    - ProductNotFoundError: a requested product does not exist.
    - InsufficientStockError: stock < requested quantity, naming the product.
    - OrderNotFoundError, InvalidStatusError, InvalidOrderTransitionError,
      ForbiddenError on the status and cancellation paths.
    - IdempotencyKeyConflictError: the key belongs to an order with other
      lines, or a concurrent request claimed it.

Audit relevance:
    Every stock decrement writes a StockHistory row with reason
    ``order:<order_id>``; every status change writes an OrderStatusHistory
    row.  Logs: ``order_created``, ``order_replayed``,
    ``order_status_updated``, ``order_cancelled``.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront_kernel.db.locking import lock_row
from storefront_kernel.db.types import line_total
from storefront_kernel.domain.clock import Clock
from storefront_kernel.domain.dtos import LineItemRequest, OrderReceipt, OrderView
from storefront_kernel.domain.order_lines import (
    RawLineItem,
    normalize_line_items,
    normalize_shipping_address,
)
from storefront_kernel.exceptions import (
    ForbiddenError,
    IdempotencyKeyConflictError,
    InsufficientStockError,
    InvalidOrderTransitionError,
    InvalidStatusError,
    OrderNotFoundError,
    ProductNotFoundError,
    UserNotFoundError,
)
from storefront_kernel.logging_config import get_logger
from storefront_kernel.models.order import (
    ORDER_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    can_transition_order,
)
from storefront_kernel.models.product import Product
from storefront_kernel.models.user import User
from storefront_kernel.selectors.order_selector import OrderSelector
from storefront_kernel.services.audit_recorder import AuditRecorder
from storefront_kernel.services.base import BaseService
from storefront_kernel.services.cart_service import CartService
from storefront_kernel.services.inventory_ledger import InventoryLedger
from storefront_kernel.utils.idempotency import normalize_idempotency_key

logger = get_logger("services.order_assembler")


class OrderAssembler(BaseService[Order]):
    """
    Order creation, reads, status override and cancellation.

    Contract:
        Methods flush; they never commit.  Reads return OrderView DTOs.

    Non-goals:
        - No client-side prices, discounts or tax.
        - No partial fulfilment; an order is created whole or not at all.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        ledger: InventoryLedger | None = None,
        auditor: AuditRecorder | None = None,
    ):
        super().__init__(session, clock)
        self._auditor = auditor or AuditRecorder(session, self._clock)
        self._ledger = ledger or InventoryLedger(session, self._clock, self._auditor)
        self._orders = OrderSelector(session)
        self._cart = CartService(session, self._clock)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(
        self,
        user_id: UUID,
        items: Iterable[RawLineItem],
        shipping_address: Any,
        idempotency_key: str | None = None,
    ) -> OrderReceipt:
        """
        Create an order from requested line items.

        Steps:
            1. Normalize items (merge duplicate products) and the address.
            2. Lock every requested product in ascending id order.
            3. Return the existing order if the idempotency key was used.
            4. Validate every line: product exists, stock covers quantity.
            5. Insert the header (pending, total) and one item per line with
               the catalog price as snapshot; reserve stock per line.
            6. Clear the user's cart.

        Returns:
            OrderReceipt; ``replayed`` is True for an idempotent repeat.
        """
        lines = normalize_line_items(items)
        address = normalize_shipping_address(shipping_address)
        key = normalize_idempotency_key(idempotency_key)

        if self.session.get(User, user_id) is None:
            raise UserNotFoundError(str(user_id))

        locked = self._ledger.lock_products(line.product_id for line in lines)

        if key is not None:
            existing = self._orders.by_idempotency_key(user_id, key)
            if existing is not None:
                if not _same_lines(existing, lines):
                    raise IdempotencyKeyConflictError(key, str(existing.id))
                logger.info(
                    "order_replayed",
                    extra={"order_id": str(existing.id), "idempotency_key": key},
                )
                return OrderReceipt(order=existing, replayed=True)

        priced: list[tuple[Product, int]] = []
        total = Decimal("0")
        for line in lines:
            product = locked.get(line.product_id)
            if product is None:
                raise ProductNotFoundError(str(line.product_id))
            if not product.can_supply(line.quantity):
                logger.warning(
                    "order_rejected_insufficient_stock",
                    extra={
                        "product_id": str(product.id),
                        "requested": line.quantity,
                        "available": product.stock,
                    },
                )
                raise InsufficientStockError(
                    product_id=str(product.id),
                    requested=line.quantity,
                    available=product.stock,
                    product_name=product.name,
                )
            priced.append((product, line.quantity))
            total += line_total(product.price, line.quantity)

        now = self._clock.now()
        order = Order(
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            total_amount=total,
            shipping_address=address,
            idempotency_key=key,
            created_at=now,
        )
        self.session.add(order)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # A concurrent request with other products took the key first
            if key is not None and "idempotency_key" in str(exc.orig):
                raise IdempotencyKeyConflictError(key) from exc
            raise

        for line_number, (product, quantity) in enumerate(priced, start=1):
            order.items.append(
                OrderItem(
                    line_number=line_number,
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=product.price,
                    created_at=now,
                )
            )
        self.session.flush()

        for product, quantity in priced:
            self._ledger.reserve(
                product,
                quantity,
                actor_id=user_id,
                reason=f"order:{order.id}",
            )

        cleared = self._cart.clear(user_id)

        logger.info(
            "order_created",
            extra={
                "order_id": str(order.id),
                "line_count": len(priced),
                "total_amount": str(total),
                "cart_lines_cleared": cleared,
            },
        )
        return OrderReceipt(order=OrderView.from_model(order))

    # =========================================================================
    # Reads
    # =========================================================================

    def get_order_by_id(
        self,
        order_id: UUID,
        user_id: UUID | None,
        is_admin: bool = False,
    ) -> OrderView:
        """
        One order with its items.

        A non-admin caller only sees its own orders; someone else's order
        is reported as not found.
        """
        if is_admin:
            order = self._orders.get(order_id)
        else:
            order = self._orders.get_for_user(order_id, user_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    def get_orders_by_user(self, user_id: UUID) -> list[OrderView]:
        return self._orders.by_user(user_id)

    def get_all_orders(self) -> list[OrderView]:
        return self._orders.all()

    # =========================================================================
    # Status changes
    # =========================================================================

    def update_order_status(
        self,
        order_id: UUID,
        new_status: str,
        actor_id: UUID | None = None,
    ) -> OrderView:
        """
        Administrative status override.

        Only checks that ``new_status`` is an enumerated status; the
        transition table does not apply.  A real change writes one
        OrderStatusHistory row; writing the current status records nothing.

        Raises:
            InvalidStatusError: new_status is not an OrderStatus value.
            OrderNotFoundError: order does not exist.
        """
        target = _parse_status(new_status)

        order = lock_row(self.session, Order, order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))

        previous = order.status
        if previous != target.value:
            order.status = target.value
            self.session.flush()
            self._auditor.record_order_status_change(
                order_id=order.id,
                previous_status=previous,
                new_status=target.value,
                actor_id=actor_id,
            )
            logger.info(
                "order_status_updated",
                extra={
                    "order_id": str(order.id),
                    "previous_status": previous,
                    "new_status": target.value,
                },
            )
        return OrderView.from_model(order)

    def cancel_order(
        self,
        order_id: UUID,
        user_id: UUID | None,
        is_admin: bool = False,
    ) -> OrderView:
        """
        Cancel an order and return its stock.

        Follows ORDER_TRANSITIONS: only pending or processing orders can be
        cancelled.  Every line whose product still exists is restocked
        through the InventoryLedger in the same transaction.

        Raises:
            OrderNotFoundError: order does not exist.
            ForbiddenError: caller is neither the owner nor an admin.
            InvalidOrderTransitionError: order is shipped, delivered or
                already cancelled.
        """
        order = lock_row(self.session, Order, order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        if not is_admin and order.user_id != user_id:
            raise ForbiddenError("order", str(order_id), str(user_id))

        previous = order.status
        if not can_transition_order(previous, OrderStatus.CANCELLED):
            raise InvalidOrderTransitionError(
                str(order_id), previous, OrderStatus.CANCELLED.value
            )

        restock = [item for item in order.items if item.product_id is not None]
        locked = self._ledger.lock_products(item.product_id for item in restock)

        order.status = OrderStatus.CANCELLED.value
        self.session.flush()

        for item in restock:
            product = locked.get(item.product_id)
            if product is None:
                continue
            self._ledger.release(
                product,
                item.quantity,
                actor_id=user_id,
                reason=f"order_cancelled:{order.id}",
            )

        self._auditor.record_order_status_change(
            order_id=order.id,
            previous_status=previous,
            new_status=OrderStatus.CANCELLED.value,
            actor_id=user_id,
        )
        logger.info(
            "order_cancelled",
            extra={
                "order_id": str(order.id),
                "previous_status": previous,
                "lines_restocked": len(restock),
            },
        )
        return OrderView.from_model(order)


def _same_lines(order: OrderView, lines: tuple[LineItemRequest, ...]) -> bool:
    stored = {item.product_id: item.quantity for item in order.items}
    return stored == {line.product_id: line.quantity for line in lines}


def _parse_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStatusError(value, ORDER_STATUSES) from None
