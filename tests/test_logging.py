"""Tests for the structured logging system (commerce_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from commerce_engines.order_lifecycle import OrderStateMachine
from commerce_kernel.domain.order import OrderDimension, OrderStatus
from commerce_kernel.exceptions import InvalidTransitionError
from commerce_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "commerce_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("tax_calculated", extra={"line_count": 3, "total_tax": Decimal("18.00")})

        record = _parse_log(stream)
        assert record["line_count"] == 3
        assert record["total_tax"] == "18.00"

    def test_enum_and_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info("with_values", extra={"request_id": uid, "status": OrderStatus.SHIPPED})

        record = _parse_log(stream)
        assert record["request_id"] == str(uid)
        assert record["status"] == "SHIPPED"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", order_id="ord-456")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["order_id"] == "ord-456"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_commerce_exception_code_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise InvalidTransitionError("ord-1", "order_status", "PLACED", "SHIPPED")
        except InvalidTransitionError:
            logger.error("transition_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INVALID_TARGET"
        assert record["exc_type"] == "InvalidTransitionError"
        assert record["exc_current"] == "PLACED"
        assert record["exc_target"] == "SHIPPED"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "order_id" not in record

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", store_code="in-mh-retail")
        assert LogContext.get_all() == {"correlation_id": "x", "store_code": "in-mh-retail"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(order_id="outer")
        with LogContext.bind(order_id="inner"):
            assert LogContext.get_all()["order_id"] == "inner"
        assert LogContext.get_all()["order_id"] == "outer"

    def test_bind_restores_none(self):
        assert "product_id" not in LogContext.get_all()
        with LogContext.bind(product_id="p1"):
            assert LogContext.get_all()["product_id"] == "p1"
        assert "product_id" not in LogContext.get_all()

    def test_bind_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.bind(entry_id="n")

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            order_id="o",
            product_id="p",
            store_code="s",
            actor_id="a",
            trace_id="t",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 6
        assert ctx["trace_id"] == "t"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        root = logging.getLogger("commerce_kernel")
        assert root.handlers == [h1]

    def test_get_logger_returns_child(self):
        assert get_logger("engines.tax").name == "commerce_kernel.engines.tax"

    def test_logger_hierarchy(self):
        """Child loggers inherit the commerce_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "commerce_kernel.deep.nested.module"

    def test_order_id_bound_during_transition(self, make_order):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        OrderStateMachine().request_transition(
            make_order(order_id="ord-ctx"), OrderDimension.ORDER_STATUS, "CONFIRMED"
        )

        applied = [r for r in _parse_all_logs(stream) if r["message"] == "order_transition_applied"]
        assert applied[0]["order_id"] == "ord-ctx"
        assert LogContext.get_all() == {}
