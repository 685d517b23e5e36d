"""Order and payment transition tables."""

import pytest

from storefront_kernel.models.order import (
    ORDER_STATUSES,
    ORDER_TRANSITIONS,
    TERMINAL_ORDER_STATUSES,
    OrderStatus,
    can_transition_order,
)
from storefront_kernel.models.payment import (
    PAYMENT_TRANSITIONS,
    TERMINAL_PAYMENT_STATUSES,
    PaymentStatus,
)


class TestOrderTransitions:

    def test_every_status_has_an_entry(self):
        assert set(ORDER_TRANSITIONS) == set(OrderStatus)
        assert ORDER_STATUSES == ("pending", "processing", "shipped", "delivered", "cancelled")

    @pytest.mark.parametrize(
        "current, target",
        [
            ("pending", "processing"),
            ("processing", "shipped"),
            ("shipped", "delivered"),
            ("pending", "cancelled"),
            ("processing", "cancelled"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition_order(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            ("shipped", "cancelled"),
            ("delivered", "cancelled"),
            ("cancelled", "pending"),
            ("pending", "shipped"),
            ("delivered", "processing"),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition_order(current, target)

    def test_terminal_statuses_have_no_exits(self):
        for status in TERMINAL_ORDER_STATUSES:
            assert ORDER_TRANSITIONS[status] == frozenset()


class TestPaymentTransitions:

    def test_terminal_statuses(self):
        assert TERMINAL_PAYMENT_STATUSES == {
            PaymentStatus.SUCCEEDED,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
        }
        for status in TERMINAL_PAYMENT_STATUSES:
            assert PAYMENT_TRANSITIONS[status] == frozenset()

    def test_requires_action_settles_or_cancels(self):
        assert PAYMENT_TRANSITIONS[PaymentStatus.REQUIRES_ACTION] == {
            PaymentStatus.SUCCEEDED,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
        }

    def test_pending_can_reach_everything_else(self):
        assert PAYMENT_TRANSITIONS[PaymentStatus.PENDING] == set(PaymentStatus) - {
            PaymentStatus.PENDING
        }
