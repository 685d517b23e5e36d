"""Pure input shaping for order creation (no database)."""

from decimal import Decimal
from uuid import uuid4

import pytest

from storefront_kernel.domain.clock import DeterministicClock
from storefront_kernel.domain.dtos import LineItemRequest, OrderItemView
from storefront_kernel.domain.order_lines import (
    normalize_line_items,
    normalize_shipping_address,
)
from storefront_kernel.exceptions import (
    EmptyOrderError,
    InvalidQuantityError,
    ProductNotFoundError,
    ValidationFailureError,
)


class TestNormalizeLineItems:

    def test_accepts_requests_and_mappings(self):
        a, b = uuid4(), uuid4()
        lines = normalize_line_items(
            [LineItemRequest(a, 1), {"product_id": str(b), "quantity": 2}]
        )
        assert lines == (LineItemRequest(a, 1), LineItemRequest(b, 2))

    def test_duplicates_merge_at_first_position(self):
        a, b = uuid4(), uuid4()
        lines = normalize_line_items(
            [
                {"product_id": a, "quantity": 1},
                {"product_id": b, "quantity": 4},
                {"product_id": a, "quantity": 2},
            ]
        )
        assert lines == (LineItemRequest(a, 3), LineItemRequest(b, 4))

    def test_empty(self):
        with pytest.raises(EmptyOrderError):
            normalize_line_items([])

    def test_missing_product_id(self):
        with pytest.raises(ProductNotFoundError):
            normalize_line_items([{"quantity": 1}])

    def test_bool_quantity(self):
        with pytest.raises(InvalidQuantityError) as exc_info:
            normalize_line_items([{"product_id": uuid4(), "quantity": True}])
        assert exc_info.value.quantity is True


class TestNormalizeShippingAddress:

    def test_none(self):
        assert normalize_shipping_address(None) is None

    def test_string_wrapped(self):
        assert normalize_shipping_address("12 High St") == {"address": "12 High St"}

    def test_mapping_copied(self):
        source = {"city": "Tamale"}
        result = normalize_shipping_address(source)
        assert result == source
        assert result is not source

    @pytest.mark.parametrize("address", [42, ["12 High St"], 3.5])
    def test_other_types_rejected(self, address):
        with pytest.raises(ValidationFailureError):
            normalize_shipping_address(address)


class TestViews:

    def test_order_item_line_total(self):
        item = OrderItemView(
            id=uuid4(), line_number=1, product_id=None, product_name=None,
            quantity=3, unit_price=Decimal("2.50"),
        )
        assert item.line_total == Decimal("7.50")


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        clock = DeterministicClock()
        first = clock.now()
        assert clock.now() == first
        assert clock.tick() == first.replace(second=1)
        clock.advance(59)
        assert clock.now() == first.replace(minute=1)
        assert first.tzinfo is not None
