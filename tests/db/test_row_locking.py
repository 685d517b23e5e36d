"""
Row locks held for the unit of work.

The keyed-mutex path is what SQLite runs; on PostgreSQL the same calls
issue SELECT ... FOR UPDATE.
"""

import threading

import pytest

from storefront_kernel.db.locking import (
    KeyedMutexRegistry,
    RowLockTimeoutError,
    lock_row,
    lock_rows,
    set_lock_timeout,
    supports_row_locks,
)
from storefront_kernel.models.product import Product


@pytest.fixture
def keyed_mutex_only(session):
    if supports_row_locks(session):
        pytest.skip("backend has native row locks")


@pytest.fixture
def short_lock_timeout():
    set_lock_timeout(0.2)
    yield
    set_lock_timeout(10.0)


class TestKeyedMutexRegistry:

    def test_same_key_same_lock(self):
        registry = KeyedMutexRegistry()
        assert registry.get("products", "a") is registry.get("products", "a")
        assert registry.get("products", "a") is not registry.get("orders", "a")


@pytest.mark.usefixtures("keyed_mutex_only")
class TestUnitOfWorkLocks:

    def test_lock_rows_returns_fresh_rows(self, session, session_factory, product):
        other = session_factory()
        other.get(Product, product.id).stock = 9
        other.commit()

        locked = lock_rows(session, Product, [product.id])
        session.rollback()

        assert locked[product.id].stock == 9

    def test_second_session_waits_until_commit(self, session, session_factory, product):
        lock_row(session, Product, product.id)
        acquired = threading.Event()

        def contender():
            other = session_factory()
            lock_row(other, Product, product.id)
            acquired.set()
            other.rollback()

        thread = threading.Thread(target=contender)
        thread.start()

        assert not acquired.wait(timeout=0.3)
        session.commit()
        assert acquired.wait(timeout=5)
        thread.join(timeout=5)

    def test_rollback_releases(self, session, session_factory, product, short_lock_timeout):
        lock_row(session, Product, product.id)
        session.rollback()

        other = session_factory()
        assert lock_row(other, Product, product.id) is not None
        other.rollback()

    def test_reentrant_within_unit_of_work(self, session, product):
        lock_row(session, Product, product.id)
        assert lock_row(session, Product, product.id) is not None
        session.rollback()

    def test_timeout(self, session, session_factory, product, short_lock_timeout, captured_logs):
        lock_row(session, Product, product.id)

        other = session_factory()
        with pytest.raises(RowLockTimeoutError) as exc_info:
            lock_row(other, Product, product.id)
        other.rollback()
        session.rollback()

        assert exc_info.value.table == "products"
        assert any(r["message"] == "row_lock_timeout" for r in captured_logs())
