"""Tests for resumie/core/logger.py: formatters and request id correlation."""

import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
import logging

from resumie.core.logger import ConsoleFormatter, JSONFormatter, build_formatter
from resumie.middleware import request_id_var


def _record(message: str = "PDF assembled", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="resumie",
        level=logging.WARNING,
        pathname=__file__,
        lineno=12,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:

    def test_fields_and_request_id(self):
        token = request_id_var.set("abcd1234")
        try:
            entry = json.loads(JSONFormatter().format(_record()))
        finally:
            request_id_var.reset(token)
        assert entry["service"] == "resumie"
        assert entry["level"] == "WARNING"
        assert entry["message"] == "PDF assembled"
        assert entry["request_id"] == "abcd1234"
        assert entry["source"].endswith(":12")
        assert "exception" not in entry

    def test_exception_included(self):
        try:
            raise ValueError("bad page")
        except ValueError:
            entry = json.loads(JSONFormatter().format(_record(exc_info=sys.exc_info())))
        assert "ValueError: bad page" in entry["exception"]

    def test_outside_request_uses_dash(self):
        assert json.loads(JSONFormatter().format(_record()))["request_id"] == "-"


class TestConsoleFormatter:

    def test_line_has_level_logger_and_request_id(self):
        token = request_id_var.set("feedbeef")
        try:
            line = ConsoleFormatter().format(_record("DOCX built"))
        finally:
            request_id_var.reset(token)
        assert "[WARNING ]" in line
        assert "resumie [feedbeef]: DOCX built" in line


class TestBuildFormatter:

    def test_selects_by_log_format(self):
        assert isinstance(build_formatter("json"), JSONFormatter)
        assert isinstance(build_formatter(" JSON "), JSONFormatter)
        assert isinstance(build_formatter("console"), ConsoleFormatter)
        assert isinstance(build_formatter("anything"), ConsoleFormatter)
