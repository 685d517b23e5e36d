"""
Inventory Ledger: locked read-modify-write of product stock.

Every real stock change leaves exactly one StockHistory row; a rejected
change leaves the product and the history untouched.
"""

from uuid import uuid4

import pytest

from storefront_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidStockValueError,
    ProductNotFoundError,
)


class TestAdjustStock:

    def test_positive_delta_increases_stock(self, session, ledger, history, product, test_actor_id):
        updated = ledger.adjust_stock(product.id, 3, actor_id=test_actor_id)
        session.commit()

        assert updated.stock == 8
        rows = history.stock_history(product.id)
        assert len(rows) == 1
        assert (rows[0].previous_stock, rows[0].new_stock) == (5, 8)
        assert rows[0].delta == 3
        assert rows[0].reason == "adjustment"
        assert rows[0].changed_by == test_actor_id

    def test_negative_delta_to_exactly_zero(self, session, ledger, history, product):
        updated = ledger.adjust_stock(product.id, -5)
        session.commit()

        assert updated.stock == 0
        assert history.stock_history(product.id)[0].new_stock == 0

    def test_overdraw_rejected_without_mutation(self, session, ledger, history, product):
        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.adjust_stock(product.id, -6)
        session.rollback()

        err = exc_info.value
        assert err.product_id == str(product.id)
        assert err.product_name == "Product P"
        assert err.requested == 6
        assert err.available == 5

        session.refresh(product)
        assert product.stock == 5
        assert history.stock_history(product.id) == []

    def test_zero_delta_records_nothing(self, session, ledger, history, product):
        ledger.adjust_stock(product.id, 0)
        session.commit()

        assert history.stock_history(product.id) == []

    @pytest.mark.parametrize("delta", [1.5, "2", True, None])
    def test_non_integer_delta_rejected(self, ledger, product, delta):
        with pytest.raises(InvalidQuantityError):
            ledger.adjust_stock(product.id, delta)

    def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFoundError):
            ledger.adjust_stock(uuid4(), 1)

    def test_custom_reason_and_clock(self, session, ledger, history, product, deterministic_clock):
        deterministic_clock.advance(60)
        ledger.adjust_stock(product.id, 2, reason="restock:PO-17")
        session.commit()

        row = history.stock_history(product.id)[0]
        assert row.reason == "restock:PO-17"
        assert row.changed_at.replace(tzinfo=None) == deterministic_clock.now().replace(tzinfo=None)

    def test_logs_adjustment(self, session, ledger, product, captured_logs):
        ledger.adjust_stock(product.id, -2)
        session.commit()

        records = [r for r in captured_logs() if r["message"] == "stock_adjusted"]
        assert len(records) == 1
        assert records[0]["previous_stock"] == 5
        assert records[0]["new_stock"] == 3


class TestSetStock:

    def test_reset_to_absolute_value(self, session, ledger, history, product):
        updated = ledger.set_stock(product.id, 12)
        session.commit()

        assert updated.stock == 12
        row = history.stock_history(product.id)[0]
        assert (row.previous_stock, row.new_stock, row.reason) == (5, 12, "reset")

    def test_same_value_records_nothing(self, session, ledger, history, product):
        ledger.set_stock(product.id, 5)
        session.commit()

        assert history.stock_history(product.id) == []

    @pytest.mark.parametrize("value", [-1, 2.0, False])
    def test_invalid_values_rejected(self, session, ledger, product, value):
        with pytest.raises(InvalidStockValueError):
            ledger.set_stock(product.id, value)
        session.rollback()

        session.refresh(product)
        assert product.stock == 5

    def test_unknown_product(self, ledger):
        with pytest.raises(ProductNotFoundError):
            ledger.set_stock(uuid4(), 3)


class TestLockedPath:

    def test_lock_products_skips_missing_ids(self, session, ledger, create_product):
        a = create_product(name="A")
        b = create_product(name="B")
        missing = uuid4()

        locked = ledger.lock_products([b.id, missing, a.id, a.id])
        session.rollback()

        assert set(locked) == {a.id, b.id}

    def test_reserve_and_release(self, session, ledger, history, product, deterministic_clock):
        locked = ledger.lock_products([product.id])[product.id]
        ledger.reserve(locked, 4, reason="order:test")
        deterministic_clock.advance(1)
        ledger.release(locked, 1, reason="order_cancelled:test")
        session.commit()

        session.refresh(product)
        assert product.stock == 2
        reasons = [r.reason for r in history.stock_history(product.id)]
        assert reasons == ["order_cancelled:test", "order:test"]

    def test_reserve_more_than_available(self, session, ledger, product):
        locked = ledger.lock_products([product.id])[product.id]
        with pytest.raises(InsufficientStockError):
            ledger.reserve(locked, 6)
        session.rollback()

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_reserve_requires_positive_quantity(self, session, ledger, product, quantity):
        locked = ledger.lock_products([product.id])[product.id]
        with pytest.raises(InvalidQuantityError):
            ledger.reserve(locked, quantity)
        session.rollback()
