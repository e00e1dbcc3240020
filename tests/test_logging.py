"""Tests for mapper_core/logging.py."""

import json
import logging
import sys

from mapper_core.logging import JsonFormatter, get_logger, log_directory


class TestJsonFormatter:
    def _record(self, msg="hello %s", args=("world",)):
        return logging.LogRecord("mapping.test", logging.INFO, __file__, 12, msg, args, None)

    def test_single_json_line(self):
        line = JsonFormatter().format(self._record())
        assert "\n" not in line
        payload = json.loads(line)
        assert payload["msg"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "mapping.test"
        assert payload["where"].endswith(":12")
        assert "thread" in payload

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "mapping.test", logging.ERROR, __file__, 1, "failed", (),
                exc_info=sys.exc_info(),
            )
        payload = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in payload["exception"]


class TestGetLogger:
    def test_idempotent(self):
        first = get_logger("tests.idempotent")
        second = get_logger("tests.idempotent")
        assert first is second
        assert len(first.handlers) == 2

    def test_without_console(self):
        logger = get_logger("tests.quiet", console=False)
        assert len(logger.handlers) == 1
        assert not logger.propagate

    def test_writes_jsonl_file(self):
        logger = get_logger("tests.file", console=False)
        logger.info("cells=%d", 12)
        for handler in logger.handlers:
            handler.flush()
        lines = (log_directory() / "tests.file.jsonl").read_text().strip().splitlines()
        assert json.loads(lines[-1])["msg"] == "cells=12"
