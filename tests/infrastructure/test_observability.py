"""Structured Logging — tests for JSONFormatter and setup_logging."""

import json
import logging

from pcas.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "pcas.test", logging.WARNING, __file__, 1, "cache write failed", None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_base_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "WARNING"
    assert log["logger"] == "pcas.test"
    assert log["message"] == "cache write failed"
    assert "timestamp" in log


def test_formatter_surfaces_known_extras_only():
    log = json.loads(JSONFormatter().format(
        _record(cache_key="token", status_code=401, unrelated="x"),
    ))
    assert log["cache_key"] == "token"
    assert log["status_code"] == 401
    assert "unrelated" not in log


def test_setup_logging_replaces_its_own_handler():
    previous_level = logging.root.level
    try:
        setup_logging("DEBUG", "json")
        setup_logging("WARNING", "text")
        ours = [h for h in logging.root.handlers if getattr(h, "_pcas_handler", False)]
        assert len(ours) == 1
        assert not isinstance(ours[0].formatter, JSONFormatter)
        assert logging.root.level == logging.WARNING
    finally:
        logging.root.setLevel(previous_level)
        for handler in list(logging.root.handlers):
            if getattr(handler, "_pcas_handler", False):
                logging.root.removeHandler(handler)
