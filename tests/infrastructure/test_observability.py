"""Tests for structured logging setup."""

import json
import logging

from authapi.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "authapi.startup", logging.ERROR, __file__, 1, "Missing %s", ("PORT",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_core_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "ERROR"
    assert log["logger"] == "authapi.startup"
    assert log["message"] == "Missing PORT"
    assert "timestamp" in log


def test_json_formatter_surfaces_extras():
    log = json.loads(JSONFormatter().format(
        _record(env_var="PORT", error_code="missing_optional", stage="validating"),
    ))
    assert log["env_var"] == "PORT"
    assert log["error_code"] == "missing_optional"
    assert log["stage"] == "validating"


def test_setup_logging_installs_single_handler():
    before = list(logging.root.handlers)
    level = logging.root.level
    try:
        first = setup_logging("DEBUG", "json")
        second = setup_logging("WARNING", "text")
        assert first not in logging.root.handlers
        assert second in logging.root.handlers
        assert isinstance(second.formatter, logging.Formatter)
        assert not isinstance(second.formatter, JSONFormatter)
        assert logging.root.level == logging.WARNING
    finally:
        logging.root.removeHandler(second)
        logging.root.handlers[:] = before
        logging.root.setLevel(level)
