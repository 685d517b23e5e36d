"""Tests for the structured logging system (storefront_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from storefront_kernel.exceptions import InsufficientStockError
from storefront_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


class TestStructuredFormatter:
    """One JSON object per record."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "storefront_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("stock_adjusted", extra={"delta": -2, "new_stock": 3})

        record = _parse_log(stream)
        assert record["delta"] == -2
        assert record["new_stock"] == 3

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        with LogContext.bind(correlation_id="abc-123", order_id="ord-1"):
            get_logger("test").info("order_created")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["order_id"] == "ord-1"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "payment_id" not in record

    def test_uuid_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("priced", extra={"product_id": uid, "price": Decimal("19.99")})

        record = _parse_log(stream)
        assert record["product_id"] == str(uid)
        assert record["price"] == "19.99"

    def test_storefront_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InsufficientStockError("p-1", requested=3, available=1, product_name="Lamp")
        except InsufficientStockError:
            get_logger("test").error("order_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "InsufficientStockError"
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_product_id"] == "p-1"
        assert record["exc_product_name"] == "Lamp"
        assert record["exc_requested"] == 3
        assert record["exc_available"] == 1
        assert "traceback" in record

    def test_debug_suppressed_at_info(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


class TestLogContext:
    """Context propagation."""

    def test_bind_and_get(self):
        with LogContext.bind(correlation_id="x", user_id="u"):
            assert LogContext.get_all() == {"correlation_id": "x", "user_id": "u"}

    def test_clear(self):
        with LogContext.bind(payment_id="p"):
            LogContext.clear()
            assert LogContext.get_all() == {}

    def test_bind_restores_outer_value(self):
        with LogContext.bind(correlation_id="outer"):
            with LogContext.bind(correlation_id="inner"):
                assert LogContext.get_all()["correlation_id"] == "inner"
            assert LogContext.get_all()["correlation_id"] == "outer"
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="trace_id"):
            with LogContext.bind(trace_id="t"):
                pass

    def test_bind_skips_none_and_stringifies(self):
        order_id = uuid4()
        with LogContext.bind(order_id=order_id, actor_id=None):
            ctx = LogContext.get_all()
            assert ctx == {"order_id": str(order_id)}
        assert LogContext.get_all() == {}


class TestConfigureLogging:
    """Initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("storefront_kernel").handlers) == 1

    def test_does_not_propagate_to_root(self):
        configure_logging(handler=_make_handler()[0])
        assert logging.getLogger("storefront_kernel").propagate is False

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("services.order_assembler").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["logger"] == "storefront_kernel.services.order_assembler"
