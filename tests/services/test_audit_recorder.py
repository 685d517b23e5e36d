"""AuditRecorder: append-only, one row per real change, none for no-ops."""

from uuid import uuid4

from storefront_kernel.models.order import OrderStatus
from storefront_kernel.models.user import UserRole


class TestRecordRoleChange:

    def test_writes_one_row(self, session, auditor, history, test_actor_id, deterministic_clock):
        user_id = uuid4()
        row = auditor.record_role_change(user_id, "user", "admin", actor_id=test_actor_id)
        session.commit()

        assert row is not None
        assert row.changed_at == deterministic_clock.now()
        records = history.role_history(user_id)
        assert len(records) == 1
        assert (records[0].previous_role, records[0].new_role) == ("user", "admin")
        assert records[0].changed_by == test_actor_id

    def test_identical_roles_short_circuit(self, session, auditor, history):
        user_id = uuid4()
        assert auditor.record_role_change(user_id, "admin", "admin") is None
        session.commit()

        assert history.role_history(user_id) == []

    def test_accepts_enum_members(self, session, auditor, history):
        user_id = uuid4()
        auditor.record_role_change(user_id, UserRole.ADMIN, UserRole.USER)
        session.commit()

        record = history.role_history(user_id)[0]
        assert (record.previous_role, record.new_role) == ("admin", "user")


class TestRecordStockChange:

    def test_writes_reason_and_actor(self, session, auditor, history, test_actor_id):
        product_id = uuid4()
        auditor.record_stock_change(product_id, 4, 1, actor_id=test_actor_id, reason="damaged")
        session.commit()

        record = history.stock_history(product_id)[0]
        assert record.delta == -3
        assert record.reason == "damaged"
        assert record.changed_by == test_actor_id

    def test_identical_stock_short_circuits(self, session, auditor, history):
        product_id = uuid4()
        assert auditor.record_stock_change(product_id, 7, 7) is None
        session.commit()

        assert history.stock_history(product_id) == []


class TestRecordOrderStatusChange:

    def test_system_change_has_no_actor(self, session, auditor, history):
        order_id = uuid4()
        auditor.record_order_status_change(order_id, OrderStatus.PENDING, OrderStatus.PROCESSING)
        session.commit()

        record = history.order_status_history(order_id)[0]
        assert (record.previous_status, record.new_status) == ("pending", "processing")
        assert record.changed_by is None

    def test_newest_first(self, session, auditor, history, deterministic_clock):
        order_id = uuid4()
        auditor.record_order_status_change(order_id, "pending", "processing")
        deterministic_clock.advance(5)
        auditor.record_order_status_change(order_id, "processing", "shipped")
        session.commit()

        statuses = [r.new_status for r in history.order_status_history(order_id)]
        assert statuses == ["shipped", "processing"]
