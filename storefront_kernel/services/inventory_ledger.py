"""
InventoryLedger -- per-product stock under row locks.

Responsibility:
    Owns every write to ``Product.stock``: administrative adjustments and
    resets, reservations for new orders, and restocks for cancelled orders.
    Each real change is recorded through the AuditRecorder.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by StorefrontOrchestrator for administrative operations and by
    OrderAssembler, which shares its unit of work.

Invariants enforced:
    - Stock never drops below zero.  Every change is a locked
      read-modify-write: the row is locked (db/locking.py), re-read, checked,
      then written, all inside the caller's transaction.  A rejected change
      mutates nothing.
    - Lock order: lock_products() acquires locks in ascending product id
      order so overlapping multi-product orders cannot deadlock.
    - One StockHistory row per real change; a zero delta or a reset to the
      current value records nothing.

Failure modes:
    - ProductNotFoundError: the product id does not exist.
    - InsufficientStockError: the change would take stock below zero.
    - InvalidQuantityError: delta or reservation quantity is not an integer
      (or, for reservations, not positive).
    - InvalidStockValueError: absolute reset value is negative.
    - RowLockTimeoutError: lock not acquired in time (non-native backends).

Audit relevance:
    Structured logs ``stock_adjusted``, ``stock_set``, ``stock_reserved``
    and ``stock_released`` carry product id, previous and new stock, and the
    actor.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from storefront_kernel.db.locking import lock_row, lock_rows
from storefront_kernel.domain.clock import Clock
from storefront_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStockValueError,
    ProductNotFoundError,
)
from storefront_kernel.logging_config import get_logger
from storefront_kernel.models.product import Product
from storefront_kernel.services.audit_recorder import AuditRecorder
from storefront_kernel.services.base import BaseService

logger = get_logger("services.inventory_ledger")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class InventoryLedger(BaseService[Product]):
    """
    Stock ledger for products.

    Contract:
        adjust_stock() and set_stock() lock the product themselves.
        reserve() and release() require the product to be locked already by
        the current unit of work (via lock_products()).

    Non-goals:
        - No multi-warehouse or per-location stock.
        - Does NOT commit; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditRecorder | None = None,
    ):
        super().__init__(session, clock)
        self._auditor = auditor or AuditRecorder(session, self._clock)

    # =========================================================================
    # Locking
    # =========================================================================

    def lock_products(self, product_ids: Iterable[UUID]) -> dict[UUID, Product]:
        """
        Lock the given products in ascending id order.

        Returns:
            Mapping of product id -> locked Product.  Unknown ids are absent;
            the caller decides whether that is an error.
        """
        return lock_rows(self.session, Product, product_ids)

    def _lock_one(self, product_id: UUID) -> Product:
        product = lock_row(self.session, Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    # =========================================================================
    # Administrative mutations
    # =========================================================================

    def adjust_stock(
        self,
        product_id: UUID,
        delta: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> Product:
        """
        Add ``delta`` (may be negative) to the product's stock.

        Postconditions:
            - On success stock == previous + delta >= 0 and one StockHistory
              row exists (none for delta == 0).
            - On failure nothing changed.

        Raises:
            InvalidQuantityError: delta is not an integer.
            ProductNotFoundError: product does not exist.
            InsufficientStockError: previous + delta < 0.
        """
        if not _is_int(delta):
            raise InvalidQuantityError(str(product_id), delta)

        product = self._lock_one(product_id)
        previous = product.stock
        new_stock = previous + delta

        if new_stock < 0:
            logger.warning(
                "stock_adjustment_rejected",
                extra={
                    "product_id": str(product_id),
                    "current_stock": previous,
                    "delta": delta,
                },
            )
            raise InsufficientStockError(
                product_id=str(product_id),
                requested=-delta,
                available=previous,
                product_name=product.name,
            )

        self._write(product, new_stock, actor_id, reason or "adjustment")
        logger.info(
            "stock_adjusted",
            extra={
                "product_id": str(product_id),
                "previous_stock": previous,
                "new_stock": new_stock,
                "delta": delta,
            },
        )
        return product

    def set_stock(
        self,
        product_id: UUID,
        value: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> Product:
        """
        Reset the product's stock to an absolute value.

        Raises:
            InvalidStockValueError: value is not a non-negative integer.
            ProductNotFoundError: product does not exist.
        """
        if not _is_int(value) or value < 0:
            raise InvalidStockValueError(str(product_id), value)

        product = self._lock_one(product_id)
        previous = product.stock
        self._write(product, value, actor_id, reason or "reset")
        logger.info(
            "stock_set",
            extra={
                "product_id": str(product_id),
                "previous_stock": previous,
                "new_stock": value,
            },
        )
        return product

    # =========================================================================
    # Order-driven mutations (product already locked)
    # =========================================================================

    def reserve(
        self,
        product: Product,
        quantity: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> Product:
        """
        Decrement a locked product's stock for an order line.

        Preconditions:
            ``product`` was returned by lock_products() in this unit of work.

        Raises:
            InvalidQuantityError: quantity is not a positive integer.
            InsufficientStockError: stock < quantity.
        """
        if not _is_int(quantity) or quantity <= 0:
            raise InvalidQuantityError(str(product.id), quantity)
        if not product.can_supply(quantity):
            raise InsufficientStockError(
                product_id=str(product.id),
                requested=quantity,
                available=product.stock,
                product_name=product.name,
            )

        previous = product.stock
        self._write(product, previous - quantity, actor_id, reason)
        logger.debug(
            "stock_reserved",
            extra={
                "product_id": str(product.id),
                "quantity": quantity,
                "new_stock": product.stock,
            },
        )
        return product

    def release(
        self,
        product: Product,
        quantity: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> Product:
        """Return ``quantity`` units of a locked product to stock."""
        if not _is_int(quantity) or quantity <= 0:
            raise InvalidQuantityError(str(product.id), quantity)

        previous = product.stock
        self._write(product, previous + quantity, actor_id, reason)
        logger.debug(
            "stock_released",
            extra={
                "product_id": str(product.id),
                "quantity": quantity,
                "new_stock": product.stock,
            },
        )
        return product

    # =========================================================================
    # Internals
    # =========================================================================

    def _write(
        self,
        product: Product,
        new_stock: int,
        actor_id: UUID | None,
        reason: str | None,
    ) -> None:
        previous = product.stock
        if previous == new_stock:
            return
        product.stock = new_stock
        product.updated_at = self._clock.now()
        self.session.flush()
        self._auditor.record_stock_change(
            product_id=product.id,
            previous_stock=previous,
            new_stock=new_stock,
            actor_id=actor_id,
            reason=reason,
        )
