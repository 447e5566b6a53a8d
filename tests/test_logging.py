"""
Test suite for logging helpers.
"""

from unittest.mock import MagicMock

import pytest

from orderdesk.core.logging import (
    add_operation_id,
    clear_context,
    get_operation_id,
    log_performance,
    set_operation_id,
)


def test_operation_id_added_to_events():
    operation_id = set_operation_id()
    try:
        event = add_operation_id(MagicMock(), "info", {"event": "Order created"})
    finally:
        clear_context()

    assert event["operation_id"] == operation_id
    assert get_operation_id() == ""


def test_no_operation_id_outside_actions():
    clear_context()

    event = add_operation_id(MagicMock(), "info", {"event": "Order created"})

    assert "operation_id" not in event


def test_performance_logger_reports_completion():
    logger = MagicMock()

    with log_performance(logger, "order.create", number="0001"):
        pass

    logger.debug.assert_called_with(
        "Operation completed",
        operation="order.create",
        duration_ms=pytest.approx(0, abs=500),
        number="0001",
    )


def test_performance_logger_reports_failure():
    logger = MagicMock()

    with pytest.raises(RuntimeError):
        with log_performance(logger, "order.create"):
            raise RuntimeError("boom")

    kwargs = logger.warning.call_args.kwargs
    assert kwargs["operation"] == "order.create"
    assert kwargs["error_type"] == "RuntimeError"
