"""
AuditRecorder -- append-only history writer for privileged mutations.

Responsibility:
    Writes RoleHistory, StockHistory and OrderStatusHistory rows whenever
    a mutator changes a role, a stock level or an order status.

Architecture position:
    Kernel > Services -- imperative shell.
    Called synchronously by InventoryLedger, OrderAssembler, PaymentTracker
    and UserRoleService inside the mutator's own transaction, so a history
    row exists if and only if the change it describes was committed.

Invariants enforced:
    - Append-only: this class exposes inserts only.  UPDATE/DELETE through
      the ORM is blocked by db/immutability.py.
    - Idempotence: previous == new records nothing and returns None.  A
      no-op request is not history.
    - Exactly one row per real change.

Failure modes:
    - ImmutabilityViolationError if a caller later tries to edit a row.

Audit relevance:
    The rows written here are the storefront's audit trail.  Each is
    attributed to an actor (None for system-driven changes such as payment
    confirmation) and stamped with the injected clock.
"""

from uuid import UUID

from storefront_kernel.logging_config import get_logger
from storefront_kernel.models.history import (
    OrderStatusHistory,
    RoleHistory,
    StockHistory,
)
from storefront_kernel.services.base import BaseService

logger = get_logger("services.audit_recorder")


def _plain(value) -> str:
    # Enum members are stored by value.
    return getattr(value, "value", value)


class AuditRecorder(BaseService[RoleHistory]):
    """
    Append-only history writer.

    Contract:
        Every ``record_*`` method returns the inserted row, or None when the
        previous and new values are identical.  Rows are flushed, not
        committed.
    """

    def record_role_change(
        self,
        user_id: UUID,
        previous_role: str,
        new_role: str,
        actor_id: UUID | None = None,
    ) -> RoleHistory | None:
        previous_role, new_role = _plain(previous_role), _plain(new_role)
        if previous_role == new_role:
            logger.debug("role_change_noop", extra={"user_id": str(user_id), "role": new_role})
            return None

        row = RoleHistory(
            user_id=user_id,
            previous_role=previous_role,
            new_role=new_role,
            changed_by=actor_id,
            changed_at=self._clock.now(),
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "role_change_recorded",
            extra={
                "user_id": str(user_id),
                "previous_role": previous_role,
                "new_role": new_role,
                "changed_by": str(actor_id) if actor_id else None,
            },
        )
        return row

    def record_stock_change(
        self,
        product_id: UUID,
        previous_stock: int,
        new_stock: int,
        actor_id: UUID | None = None,
        reason: str | None = None,
    ) -> StockHistory | None:
        if previous_stock == new_stock:
            return None

        row = StockHistory(
            product_id=product_id,
            previous_stock=previous_stock,
            new_stock=new_stock,
            reason=reason,
            changed_by=actor_id,
            changed_at=self._clock.now(),
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "stock_change_recorded",
            extra={
                "product_id": str(product_id),
                "previous_stock": previous_stock,
                "new_stock": new_stock,
                "reason": reason,
                "changed_by": str(actor_id) if actor_id else None,
            },
        )
        return row

    def record_order_status_change(
        self,
        order_id: UUID,
        previous_status: str,
        new_status: str,
        actor_id: UUID | None = None,
    ) -> OrderStatusHistory | None:
        previous_status, new_status = _plain(previous_status), _plain(new_status)
        if previous_status == new_status:
            return None

        row = OrderStatusHistory(
            order_id=order_id,
            previous_status=previous_status,
            new_status=new_status,
            changed_by=actor_id,
            changed_at=self._clock.now(),
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "order_status_change_recorded",
            extra={
                "order_id": str(order_id),
                "previous_status": previous_status,
                "new_status": new_status,
                "changed_by": str(actor_id) if actor_id else None,
            },
        )
        return row
