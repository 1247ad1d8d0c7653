"""
Tests for structured JSON logging.
"""

import json
import logging
import sys

from app.logging_config import APP_LOGGER_NAME, JSONFormatter, configure_logging


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_extra_fields_are_merged(self):
        line = JSONFormatter().format(_record("card_created", card_id="abc", attempt=2))
        entry = json.loads(line)
        assert entry["message"] == "card_created"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "app.test"
        assert entry["card_id"] == "abc"
        assert entry["attempt"] == 2
        assert "msg" not in entry
        assert "args" not in entry

    def test_exception_is_rendered(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "app.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestConfigureLogging:

    def test_repeated_calls_do_not_duplicate_handlers(self):
        configure_logging("DEBUG")
        logger = configure_logging("WARNING")
        assert logger.name == APP_LOGGER_NAME
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        configure_logging("INFO")

    def test_plain_text_output(self):
        logger = configure_logging("INFO", json_output=False)
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
        configure_logging("INFO")
