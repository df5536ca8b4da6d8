"""
Unit Tests for structured JSON logging.

Author: Matthew Hong
"""

import json
import logging
import sys

import pytest

from verify_gateway.logger import JSONFormatter, request_id_var, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="verify_gateway.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Verification %s",
        args=("failed",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_standard_fields(self) -> None:
        """Output should be JSON with level, logger and message."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "verify_gateway.test"
        assert data["message"] == "Verification failed"
        assert "timestamp" in data

    def test_request_id_included(self) -> None:
        """The current request ID should be attached."""
        token = request_id_var.set("req-123")
        try:
            data = json.loads(JSONFormatter().format(make_record()))
        finally:
            request_id_var.reset(token)

        assert data["request_id"] == "req-123"

    def test_extra_fields(self) -> None:
        """Known extra fields should be copied, unknown ones ignored."""
        record = make_record(user_id="u-1", score=0.25, success=False, image_data=b"x")

        data = json.loads(JSONFormatter().format(record))

        assert data["user_id"] == "u-1"
        assert data["score"] == 0.25
        assert data["success"] is False
        assert "image_data" not in data

    def test_exception_included(self) -> None:
        """Exception tracebacks should be serialized."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_installs_json_handler(self) -> None:
        """Root logger should get a single JSON handler at the given level."""
        setup_logging("debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
