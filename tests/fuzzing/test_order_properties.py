"""
Property-based tests for order line shaping and order totals.

Properties:
- Merging duplicate products preserves the per-product quantity sum and
  the first-seen order of products.
- Non-positive quantities are always rejected.
- A created order's total equals the sum of its price-snapshot lines, and
  every product's stock drops by exactly the ordered quantity.
- Idempotency keys come back stripped, bounded, or as None.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from storefront_kernel.db.types import line_total
from storefront_kernel.domain.order_lines import normalize_line_items
from storefront_kernel.exceptions import InvalidQuantityError, ValidationFailureError
from storefront_kernel.utils.idempotency import (
    MAX_IDEMPOTENCY_KEY_LENGTH,
    normalize_idempotency_key,
)

PRODUCT_POOL = [uuid4() for _ in range(6)]

prices = st.decimals(min_value=Decimal("0.00"), max_value=Decimal("9999.99"), places=2)
quantities = st.integers(min_value=1, max_value=50)
raw_lines = st.lists(
    st.tuples(st.sampled_from(PRODUCT_POOL), quantities),
    min_size=1,
    max_size=20,
)


class TestLineMerging:

    @given(raw_lines)
    def test_quantities_summed_per_product(self, lines):
        merged = normalize_line_items(
            [{"product_id": pid, "quantity": qty} for pid, qty in lines]
        )

        expected: dict = {}
        for pid, qty in lines:
            expected[pid] = expected.get(pid, 0) + qty
        assert {line.product_id: line.quantity for line in merged} == expected
        assert [line.product_id for line in merged] == list(expected)

    @given(raw_lines, st.integers(max_value=0))
    def test_non_positive_quantity_rejected(self, lines, bad):
        items = [{"product_id": pid, "quantity": qty} for pid, qty in lines]
        items.append({"product_id": PRODUCT_POOL[0], "quantity": bad})

        with pytest.raises(InvalidQuantityError):
            normalize_line_items(items)

    @given(prices, quantities)
    def test_line_total_is_exact_at_cent_precision(self, price, qty):
        assert line_total(price, qty) == price * qty


class TestIdempotencyKeys:

    @given(st.text(max_size=150))
    def test_normalized_or_rejected(self, key):
        try:
            normalized = normalize_idempotency_key(key)
        except ValidationFailureError:
            assert len(key.strip()) > MAX_IDEMPOTENCY_KEY_LENGTH
            return

        if normalized is None:
            assert key.strip() == ""
        else:
            assert normalized == key.strip()
            assert 0 < len(normalized) <= MAX_IDEMPOTENCY_KEY_LENGTH


class TestOrderTotals:

    @settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(st.lists(st.tuples(prices, quantities), min_size=1, max_size=4))
    def test_total_equals_snapshot_lines(self, session, orchestrator, customer, create_product, basket):
        products = [
            create_product(name=f"P{i}", price=price, stock=qty + 3)
            for i, (price, qty) in enumerate(basket)
        ]

        result = orchestrator.create_order(
            customer.id,
            [{"product_id": p.id, "quantity": qty} for p, (_, qty) in zip(products, basket)],
            "x",
        )

        assert result.is_success
        order = result.value.order
        assert order.total_amount == sum((price * qty for price, qty in basket), Decimal("0"))
        assert order.items_total == order.total_amount
        for p in products:
            session.refresh(p)
            assert p.stock == 3
