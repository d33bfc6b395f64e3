"""
Tests for logging setup.
"""

import logging
import sys

import pytest
from rich.logging import RichHandler

from relmirror.utils.logging import FileFormatter, _parse_level, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_relmirror_logger():
    yield
    logger = logging.getLogger("relmirror")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.INFO)


class TestParseLevel:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("DEBUG", logging.DEBUG),
            ("warning", logging.WARNING),
            (logging.ERROR, logging.ERROR),
            ("nonsense", logging.INFO),
        ],
    )
    def test_parse(self, value, expected):
        assert _parse_level(value) == expected


class TestSetupLogging:
    def test_rich_console_handler(self):
        logger = setup_logging(level="DEBUG")
        assert logger.name == "relmirror"
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_plain_console_handler(self):
        logger = setup_logging(use_rich=False)
        assert not any(isinstance(h, RichHandler) for h in logger.handlers)
        assert any(isinstance(h, logging.StreamHandler) for h in logger.handlers)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_file_handler_writes_child_logger_records(self, tmp_path):
        log_file = tmp_path / "logs" / "relmirror.log"
        setup_logging(log_file=log_file, console_enabled=False)

        get_logger("relmirror.sync").info("Processing artifact: a")
        for handler in logging.getLogger("relmirror").handlers:
            handler.flush()

        text = log_file.read_text()
        assert "relmirror.sync: Processing artifact: a" in text
        assert "[INFO    ]" in text

    def test_file_formatter_includes_traceback(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("relmirror", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        assert "ValueError: boom" in FileFormatter().format(record)
