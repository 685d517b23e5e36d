"""
PaymentTracker -- payment attempts and their state machine.

Responsibility:
    Records payment attempts against orders, attaches the provider identity,
    drives PaymentStatus transitions, and on a successful confirmation moves
    the order from pending to processing in the same transaction.

Architecture position:
    Kernel > Services -- imperative shell.
    Operates after order creation; reads the order total and never touches
    stock.

Invariants enforced:
    - Transitions follow PAYMENT_TRANSITIONS; a terminal payment is never
      confirmed, failed or cancelled again.  Checks run under the payment
      row lock so two concurrent confirmations cannot both succeed.
    - Lock order is payment -> order, matching the rest of the kernel
      (payment -> order -> products).
    - Payment.amount is the order total at the time of the attempt; currency
      is the configured storefront currency (no conversion).
    - A successful payment changes the order (pending -> processing) and
      writes its OrderStatusHistory row in the same unit of work.

Failure modes:
    - OrderNotFoundError / PaymentNotFoundError: unknown ids.
    - ForbiddenError: caller does not own the order or payment.
    - OrderCancelledError: paying for a cancelled order.
    - InvalidPaymentTransitionError: transition not allowed from the
      current status.
    - UnsupportedProviderError: no adapter registered for the provider.

Audit relevance:
    Logs ``payment_intent_created``, ``payment_confirmed``,
    ``payment_status_changed``; the order status change is also recorded
    in OrderStatusHistory with a None actor (system-driven).
"""

from uuid import UUID

from sqlalchemy.orm import Session

from storefront_kernel.db.locking import lock_row
from storefront_kernel.db.types import validate_currency
from storefront_kernel.domain.clock import Clock
from storefront_kernel.domain.dtos import PaymentIntent, PaymentView
from storefront_kernel.exceptions import (
    ForbiddenError,
    InvalidPaymentTransitionError,
    OrderCancelledError,
    OrderNotFoundError,
    PaymentNotFoundError,
)
from storefront_kernel.logging_config import get_logger
from storefront_kernel.models.order import Order, OrderStatus
from storefront_kernel.models.payment import (
    PAYMENT_TRANSITIONS,
    Payment,
    PaymentStatus,
)
from storefront_kernel.selectors.order_selector import OrderSelector
from storefront_kernel.selectors.payment_selector import PaymentSelector
from storefront_kernel.services.audit_recorder import AuditRecorder
from storefront_kernel.services.base import BaseService
from storefront_kernel.services.payment_providers import ProviderRegistry

logger = get_logger("services.payment_tracker")

DEFAULT_CURRENCY = "GHS"


class PaymentTracker(BaseService[Payment]):
    """
    Payment lifecycle service.

    Contract:
        Methods flush; they never commit.  Public methods return PaymentView
        or PaymentIntent DTOs.

    Non-goals:
        - No refunds, captures, webhooks or currency conversion.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditRecorder | None = None,
        providers: ProviderRegistry | None = None,
        currency: str = DEFAULT_CURRENCY,
    ):
        super().__init__(session, clock)
        self._auditor = auditor or AuditRecorder(session, self._clock)
        self._providers = providers or ProviderRegistry()
        self._currency = validate_currency(currency)
        self._payments = PaymentSelector(session)
        self._orders = OrderSelector(session)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_payment_intent(
        self,
        order_id: UUID,
        user_id: UUID,
        provider: str = "mock",
    ) -> PaymentIntent:
        """
        Record a pending payment for an order and register it with the
        provider.

        Postconditions:
            - One new Payment in PENDING with amount == order.total_amount,
              metadata ``{"order_status": <order status>}`` and the provider's
              payment id attached.
        """
        adapter = self._providers.get(provider)

        order = lock_row(self.session, Order, order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        if order.user_id != user_id:
            raise ForbiddenError("order", str(order_id), str(user_id))
        if order.status == OrderStatus.CANCELLED.value:
            raise OrderCancelledError(str(order_id))

        now = self._clock.now()
        payment = Payment(
            order_id=order.id,
            user_id=user_id,
            provider=adapter.name,
            amount=order.total_amount,
            currency=self._currency,
            status=PaymentStatus.PENDING.value,
            provider_metadata={"order_status": order.status},
            created_at=now,
            updated_at=now,
        )
        self.session.add(payment)
        self.session.flush()

        attachment = adapter.attach(payment)
        payment.provider_payment_id = attachment.provider_payment_id
        self.session.flush()

        logger.info(
            "payment_intent_created",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(order.id),
                "provider": adapter.name,
                "amount": str(payment.amount),
                "currency": payment.currency,
            },
        )
        return PaymentIntent(
            payment=PaymentView.from_model(payment),
            client_secret=attachment.client_secret,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def confirm_payment(
        self,
        payment_id: UUID,
        succeeded: bool,
        user_id: UUID | None = None,
    ) -> PaymentView:
        """
        Settle a pending or requires_action payment.

        ``succeeded`` selects SUCCEEDED or FAILED.  ``confirmed_at`` is
        merged into the metadata.  On success a pending order moves to
        processing; an order in any other status is left alone.
        """
        target = PaymentStatus.SUCCEEDED if succeeded else PaymentStatus.FAILED
        payment = self._lock_payment(payment_id, user_id)
        self._check_transition(payment, target)

        order = None
        if target is PaymentStatus.SUCCEEDED:
            order = lock_row(self.session, Order, payment.order_id)

        now = self._clock.now()
        self._apply(payment, target, {"confirmed_at": now.isoformat()})

        if order is not None:
            if order.status == OrderStatus.PENDING.value:
                order.status = OrderStatus.PROCESSING.value
                self.session.flush()
                self._auditor.record_order_status_change(
                    order_id=order.id,
                    previous_status=OrderStatus.PENDING.value,
                    new_status=OrderStatus.PROCESSING.value,
                    actor_id=None,
                )
            else:
                logger.warning(
                    "payment_succeeded_order_not_pending",
                    extra={"order_id": str(order.id), "order_status": order.status},
                )

        logger.info(
            "payment_confirmed",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(payment.order_id),
                "status": target.value,
            },
        )
        return PaymentView.from_model(payment)

    def mark_requires_action(self, payment_id: UUID) -> PaymentView:
        """Provider asked the customer for an extra step (e.g. 3-D Secure)."""
        payment = self._lock_payment(payment_id, None)
        self._check_transition(payment, PaymentStatus.REQUIRES_ACTION)
        self._apply(payment, PaymentStatus.REQUIRES_ACTION)
        return PaymentView.from_model(payment)

    def cancel_payment(self, payment_id: UUID, user_id: UUID | None = None) -> PaymentView:
        """Abandon a pending or requires_action payment."""
        payment = self._lock_payment(payment_id, user_id)
        self._check_transition(payment, PaymentStatus.CANCELLED)
        self._apply(
            payment,
            PaymentStatus.CANCELLED,
            {"cancelled_at": self._clock.now().isoformat()},
        )
        return PaymentView.from_model(payment)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_payment(
        self,
        payment_id: UUID,
        user_id: UUID | None = None,
        is_admin: bool = False,
    ) -> PaymentView:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(str(payment_id))
        if not is_admin and user_id is not None and payment.user_id != user_id:
            raise ForbiddenError("payment", str(payment_id), str(user_id))
        return payment

    def get_payments_for_order(
        self,
        order_id: UUID,
        user_id: UUID | None,
        is_admin: bool = False,
    ) -> list[PaymentView]:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        if not is_admin and order.user_id != user_id:
            raise ForbiddenError("order", str(order_id), str(user_id))
        return self._payments.by_order(order_id)

    def get_payments_for_user(self, user_id: UUID) -> list[PaymentView]:
        return self._payments.by_user(user_id)

    def get_all_payments(self) -> list[PaymentView]:
        return self._payments.all()

    # =========================================================================
    # Internals
    # =========================================================================

    def _lock_payment(self, payment_id: UUID, user_id: UUID | None) -> Payment:
        payment = lock_row(self.session, Payment, payment_id)
        if payment is None:
            raise PaymentNotFoundError(str(payment_id))
        if user_id is not None and payment.user_id != user_id:
            raise ForbiddenError("payment", str(payment_id), str(user_id))
        return payment

    def _check_transition(self, payment: Payment, target: PaymentStatus) -> None:
        if target not in PAYMENT_TRANSITIONS[payment.status_enum]:
            logger.warning(
                "payment_transition_rejected",
                extra={
                    "payment_id": str(payment.id),
                    "current_status": payment.status,
                    "requested_status": target.value,
                },
            )
            raise InvalidPaymentTransitionError(
                str(payment.id), payment.status, target.value
            )

    def _apply(
        self,
        payment: Payment,
        target: PaymentStatus,
        metadata: dict | None = None,
    ) -> None:
        previous = payment.status
        payment.status = target.value
        if metadata:
            # Reassign so the JSON column is marked dirty.
            payment.provider_metadata = {**(payment.provider_metadata or {}), **metadata}
        payment.updated_at = self._clock.now()
        self.session.flush()
        logger.info(
            "payment_status_changed",
            extra={
                "payment_id": str(payment.id),
                "previous_status": previous,
                "new_status": target.value,
            },
        )
