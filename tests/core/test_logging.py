"""Tests for schemaspine.core.logging."""

from __future__ import annotations

import io

import structlog

from schemaspine.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestConfigure:
    def test_configure_and_log(self):
        configure_logging(level="DEBUG", json_format=True, stream=io.StringIO())
        logger = get_logger("schemaspine.tests")
        logger.info("model.registered", table="notes", columns=3)

    def test_console_format(self):
        configure_logging(level="WARNING", json_format=False, stream=io.StringIO())
        get_logger(__name__).warning("schema.column_drift", table="notes")


class TestContext:
    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(table="notes", operation="save")
        assert structlog.contextvars.get_contextvars() == {"table": "notes", "operation": "save"}
        unbind_context("operation")
        assert structlog.contextvars.get_contextvars() == {"table": "notes"}

    def test_log_context_is_scoped(self):
        with LogContext(table="notes"):
            assert structlog.contextvars.get_contextvars()["table"] == "notes"
        assert "table" not in structlog.contextvars.get_contextvars()
