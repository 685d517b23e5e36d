"""
Module: storefront_kernel.selectors.payment_selector
Responsibility: Read access to payment attempts, newest first.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from storefront_kernel.domain.dtos import PaymentView
from storefront_kernel.models.payment import Payment
from storefront_kernel.selectors.base import BaseSelector


class PaymentSelector(BaseSelector[Payment]):
    """Read-only queries over payments."""

    def _newest_first(self, stmt) -> list[PaymentView]:
        rows = self.session.execute(
            stmt.order_by(Payment.created_at.desc(), Payment.id.desc())
        ).scalars().all()
        return [PaymentView.from_model(p) for p in rows]

    def get(self, payment_id: UUID) -> PaymentView | None:
        payment = self.session.get(Payment, payment_id)
        return PaymentView.from_model(payment) if payment is not None else None

    def by_order(self, order_id: UUID) -> list[PaymentView]:
        return self._newest_first(select(Payment).where(Payment.order_id == order_id))

    def by_user(self, user_id: UUID) -> list[PaymentView]:
        return self._newest_first(select(Payment).where(Payment.user_id == user_id))

    def all(self) -> list[PaymentView]:
        return self._newest_first(select(Payment))
