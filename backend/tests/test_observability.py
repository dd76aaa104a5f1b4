"""
restkit — Logging Setup Tests
==============================
"""

import logging

from restkit.context import MISSING_REQUEST_ID, request_id_var
from restkit.observability import LOG_FORMAT, RequestIDLogFilter, setup_logging


def _record(**extra):
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestIDLogFilter:
    def test_outside_request_uses_sentinel(self):
        record = _record()
        assert RequestIDLogFilter().filter(record) is True
        assert record.request_id == MISSING_REQUEST_ID

    def test_inside_request_uses_current_id(self):
        token = request_id_var.set("rid-123")
        try:
            record = _record()
            RequestIDLogFilter().filter(record)
        finally:
            request_id_var.reset(token)
        assert record.request_id == "rid-123"

    def test_explicit_request_id_kept(self):
        record = _record(request_id="from-extra")
        RequestIDLogFilter().filter(record)
        assert record.request_id == "from-extra"


def test_setup_logging_formats_request_id():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        setup_logging("debug")

        assert root.level == logging.DEBUG
        handler = root.handlers[0]
        assert handler.formatter._fmt == LOG_FORMAT
        assert any(isinstance(f, RequestIDLogFilter) for f in handler.filters)

        record = _record()
        for log_filter in handler.filters:
            log_filter.filter(record)
        assert f"[{MISSING_REQUEST_ID}] hello" in handler.format(record)
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
