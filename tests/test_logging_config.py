"""
Tests for log context binding and formatting.
"""

import json
import logging

import pytest

from fitbook.logging_config import (
    ContextFilter,
    HumanReadableFormatter,
    StructuredFormatter,
    bind_log_context,
    current_log_context,
    log_context,
    reset_log_context,
)
from fitbook.resilience import call_backend


def make_record(message="Session booked", extra_fields=None):
    record = logging.LogRecord(
        name="fitbook.booking_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    if extra_fields is not None:
        record.extra_fields = extra_fields
    return record


class TestLogContext:
    def test_bind_and_reset(self):
        token = bind_log_context(request_id="req-abc", user_id=None)

        assert current_log_context() == {"request_id": "req-abc"}

        reset_log_context(token)
        assert current_log_context() == {}

    def test_nested_blocks(self):
        with log_context(request_id="req-1"):
            with log_context(operation="bookings.create") as context:
                assert context == {"request_id": "req-1", "operation": "bookings.create"}
            assert current_log_context() == {"request_id": "req-1"}

        assert current_log_context() == {}

    def test_filter_stamps_record(self):
        record = make_record()
        with log_context(request_id="req-2", role="trainer"):
            assert ContextFilter().filter(record) is True

        assert record.context == {"request_id": "req-2", "role": "trainer"}


class TestFormatters:
    def test_structured_formatter_merges_context_and_fields(self):
        record = make_record(extra_fields={"session_id": 11})
        record.context = {"request_id": "req-json", "user_id": "user-1", "operation": "bookings.create"}

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Session booked"
        assert data["service"] == "fitbook"
        assert data["request_id"] == "req-json"
        assert data["user_id"] == "user-1"
        assert data["operation"] == "bookings.create"
        assert data["session_id"] == 11

    def test_human_formatter_tags_context(self):
        record = make_record(extra_fields={"client_id": "client-1"})
        record.context = {
            "request_id": "1a2b3c4d5e6f",
            "user_id": "5e6f7a8b-0000-0000-0000-000000000000",
            "role": "trainer",
            "operation": "sessions.create",
        }

        output = HumanReadableFormatter().format(record)

        assert "[1a2b3c4d user:5e6f7a8b trainer op:sessions.create]" in output
        assert "Session booked" in output
        assert "client_id=client-1" in output

    def test_human_formatter_without_context(self):
        output = HumanReadableFormatter().format(make_record())

        assert "[fitbook.booking_service] Session booked" in output


@pytest.mark.asyncio
class TestBackendOperationContext:
    async def test_operation_bound_during_call(self):
        with log_context(request_id="req-3"):
            seen = await call_backend(current_log_context, "sessions.get")

            assert seen["request_id"] == "req-3"
            assert seen["operation"] == "sessions.get"
            assert "operation" not in current_log_context()

    async def test_operation_released_after_failure(self):
        def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await call_backend(fail, "sessions.get")

        assert "operation" not in current_log_context()
