"""
Storefront Orchestrator - one transaction per storefront operation.

The Orchestrator ties together:
- InventoryLedger: stock adjustments and resets
- OrderAssembler: order creation, status override, cancellation
- PaymentTracker: payment intents and confirmation
- UserRoleService: role changes
- CartService: cart lines
- AuditRecorder: shared by all of the above

Each public method opens (implicitly) and closes one unit of work: commit
on success, rollback on any failure.  Typed kernel errors become an
OperationResult with a status; anything else is rolled back and re-raised.
"""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID
from uuid import uuid4 as _uuid4

from sqlalchemy.orm import Session

from storefront_kernel.domain.clock import Clock, SystemClock
from storefront_kernel.domain.order_lines import RawLineItem
from storefront_kernel.exceptions import (
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    StorefrontError,
    ValidationFailureError,
)
from storefront_kernel.logging_config import LogContext, get_logger
from storefront_kernel.services.audit_recorder import AuditRecorder
from storefront_kernel.services.cart_service import CartService
from storefront_kernel.services.inventory_ledger import InventoryLedger
from storefront_kernel.services.order_assembler import OrderAssembler
from storefront_kernel.services.payment_providers import ProviderRegistry
from storefront_kernel.services.payment_tracker import DEFAULT_CURRENCY, PaymentTracker
from storefront_kernel.services.user_role_service import UserRoleService

logger = get_logger("services.storefront_orchestrator")

T = TypeVar("T")


class OperationStatus(str, Enum):
    """Outcome category of a storefront operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_STATE = "invalid_state"
    FORBIDDEN = "forbidden"
    VALIDATION_FAILURE = "validation_failure"


# Checked in order; first match wins.
_ERROR_STATUS: tuple[tuple[type[StorefrontError], OperationStatus], ...] = (
    (NotFoundError, OperationStatus.NOT_FOUND),
    (InsufficientStockError, OperationStatus.INSUFFICIENT_STOCK),
    (InvalidStateError, OperationStatus.INVALID_STATE),
    (ForbiddenError, OperationStatus.FORBIDDEN),
    (ValidationFailureError, OperationStatus.VALIDATION_FAILURE),
)


def status_for_error(error: StorefrontError) -> OperationStatus | None:
    """The OperationStatus for a typed kernel error, or None if unmapped."""
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return None


@dataclass(frozen=True)
class OperationResult:
    """Result of a storefront operation."""

    status: OperationStatus
    value: Any = None
    error_code: str | None = None
    message: str | None = None
    error: StorefrontError | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.OK

    @classmethod
    def ok(cls, value: Any = None) -> "OperationResult":
        return cls(status=OperationStatus.OK, value=value)

    @classmethod
    def failure(cls, status: OperationStatus, error: StorefrontError) -> "OperationResult":
        return cls(status=status, error_code=error.code, message=str(error), error=error)


class StorefrontOrchestrator:
    """
    Transaction owner for every storefront mutation.

    Set auto_commit=False to leave commit/rollback to the caller (tests that
    want to inspect uncommitted state).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        providers: ProviderRegistry | None = None,
        currency: str = DEFAULT_CURRENCY,
        default_provider: str = "mock",
    ):
        self._session = session
        self._default_provider = default_provider
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit

        self._auditor = AuditRecorder(session, self._clock)
        self._ledger = InventoryLedger(session, self._clock, self._auditor)
        self._assembler = OrderAssembler(session, self._clock, self._ledger, self._auditor)
        self._payments = PaymentTracker(
            session, self._clock, self._auditor, providers=providers, currency=currency,
        )
        self._roles = UserRoleService(session, self._clock, self._auditor)
        self._cart = CartService(session, self._clock)

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(
        self,
        user_id: UUID,
        items: Iterable[RawLineItem],
        shipping_address: Any,
        idempotency_key: str | None = None,
    ) -> OperationResult:
        """Value: OrderReceipt."""
        return self._run(
            "create_order",
            lambda: self._assembler.create_order(
                user_id, items, shipping_address, idempotency_key=idempotency_key,
            ),
            user_id=user_id,
        )

    def update_order_status(
        self,
        order_id: UUID,
        new_status: str,
        actor_id: UUID | None = None,
    ) -> OperationResult:
        """Value: OrderView."""
        return self._run(
            "update_order_status",
            lambda: self._assembler.update_order_status(order_id, new_status, actor_id),
            actor_id=actor_id,
            order_id=order_id,
        )

    def cancel_order(
        self,
        order_id: UUID,
        user_id: UUID | None,
        is_admin: bool = False,
    ) -> OperationResult:
        """Value: OrderView."""
        return self._run(
            "cancel_order",
            lambda: self._assembler.cancel_order(order_id, user_id, is_admin=is_admin),
            user_id=user_id,
            order_id=order_id,
        )

    # =========================================================================
    # Inventory
    # =========================================================================

    def adjust_stock(
        self,
        product_id: UUID,
        delta: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> OperationResult:
        """Value: Product."""
        return self._run(
            "adjust_stock",
            lambda: self._ledger.adjust_stock(product_id, delta, actor_id, reason),
            actor_id=actor_id,
        )

    def set_stock(
        self,
        product_id: UUID,
        value: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> OperationResult:
        """Value: Product."""
        return self._run(
            "set_stock",
            lambda: self._ledger.set_stock(product_id, value, actor_id, reason),
            actor_id=actor_id,
        )

    # =========================================================================
    # Payments
    # =========================================================================

    def create_payment_intent(
        self,
        order_id: UUID,
        user_id: UUID,
        provider: str | None = None,
    ) -> OperationResult:
        """Value: PaymentIntent.  ``provider`` defaults to the configured one."""
        return self._run(
            "create_payment_intent",
            lambda: self._payments.create_payment_intent(
                order_id, user_id, provider or self._default_provider,
            ),
            user_id=user_id,
            order_id=order_id,
        )

    def confirm_payment(
        self,
        payment_id: UUID,
        succeeded: bool,
        user_id: UUID | None = None,
    ) -> OperationResult:
        """Value: PaymentView."""
        return self._run(
            "confirm_payment",
            lambda: self._payments.confirm_payment(payment_id, succeeded, user_id),
            user_id=user_id,
            payment_id=payment_id,
        )

    def cancel_payment(self, payment_id: UUID, user_id: UUID | None = None) -> OperationResult:
        """Value: PaymentView."""
        return self._run(
            "cancel_payment",
            lambda: self._payments.cancel_payment(payment_id, user_id),
            user_id=user_id,
            payment_id=payment_id,
        )

    # =========================================================================
    # Users & cart
    # =========================================================================

    def change_role(
        self,
        user_id: UUID,
        new_role: str,
        actor_id: UUID | None = None,
    ) -> OperationResult:
        """Value: User."""
        return self._run(
            "change_role",
            lambda: self._roles.change_role(user_id, new_role, actor_id),
            actor_id=actor_id,
            user_id=user_id,
        )

    def add_to_cart(self, user_id: UUID, product_id: UUID, quantity: int) -> OperationResult:
        """Value: CartLineView."""
        return self._run(
            "add_to_cart",
            lambda: self._cart.add_item(user_id, product_id, quantity),
            user_id=user_id,
        )

    def update_cart_item(self, user_id: UUID, item_id: UUID, quantity: int) -> OperationResult:
        """Value: CartLineView."""
        return self._run(
            "update_cart_item",
            lambda: self._cart.update_item_quantity(user_id, item_id, quantity),
            user_id=user_id,
        )

    def remove_from_cart(self, user_id: UUID, item_id: UUID) -> OperationResult:
        """Value: CartLineView (the removed line)."""
        return self._run(
            "remove_from_cart",
            lambda: self._cart.remove_item(user_id, item_id),
            user_id=user_id,
        )

    # =========================================================================
    # Transaction boundary
    # =========================================================================

    def _run(
        self,
        operation: str,
        work: Callable[[], T],
        *,
        actor_id: UUID | None = None,
        user_id: UUID | None = None,
        order_id: UUID | None = None,
        payment_id: UUID | None = None,
    ) -> OperationResult:
        with LogContext.bind(
            correlation_id=str(_uuid4()),
            actor_id=actor_id,
            user_id=user_id,
            order_id=order_id,
            payment_id=payment_id,
        ):
            logger.info("operation_started", extra={"operation": operation})
            t0 = time.monotonic()
            try:
                value = work()
                if self._auto_commit:
                    self._session.commit()
            except StorefrontError as exc:
                status = status_for_error(exc)
                if self._auto_commit:
                    self._session.rollback()
                if status is None:
                    logger.error("operation_failed", extra={"operation": operation}, exc_info=True)
                    raise
                logger.warning(
                    "operation_rejected",
                    extra={
                        "operation": operation,
                        "status": status.value,
                        "error_code": exc.code,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                )
                return OperationResult.failure(status, exc)
            except Exception:
                if self._auto_commit:
                    self._session.rollback()
                logger.error(
                    "operation_failed",
                    extra={
                        "operation": operation,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                    exc_info=True,
                )
                raise

            logger.info(
                "operation_completed",
                extra={
                    "operation": operation,
                    "status": OperationStatus.OK.value,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return OperationResult.ok(value)
