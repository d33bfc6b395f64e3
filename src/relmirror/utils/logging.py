"""
Logging configuration for relmirror.

Console output goes through rich's RichHandler (or a plain stderr handler when
rich output is disabled, e.g. under a log collector); an optional file handler
writes clean, parseable lines.
"""

import logging
import sys
import threading
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


class FileFormatter(logging.Formatter):
    """Formatter for file logs - clean and parseable."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with full exception info for errors."""
        result = super().format(record)

        if record.exc_info:
            import traceback

            result += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return result


class PlainFormatter(logging.Formatter):
    """Single-line "level: timestamp - msg" format for non-rich consoles."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        base_format = f"{record.levelname}: {self.formatTime(record)} - {record.getMessage()}"

        # For errors, add file info
        if record.levelno >= logging.ERROR and record.pathname:
            filename = Path(record.pathname).name
            base_format = (
                f"{record.levelname}: {self.formatTime(record)} - {filename}:{record.lineno} - {record.getMessage()}"
            )

        if record.exc_info:
            base_format += "\n" + self.formatException(record.exc_info)
        return base_format


LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _parse_level(level: str | int) -> int:
    """Map a level name (any case) or number to a logging constant; unknown names give INFO."""
    if isinstance(level, int):
        return level
    return LEVEL_MAP.get(str(level).strip().upper(), logging.INFO)


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    console_enabled: bool = True,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Configure the "relmirror" logger for a CLI run.

    Replaces any handlers from an earlier call. The console handler honours
    ``level``; the file handler (if ``log_file`` is set, parent directories are
    created, appended to) records at DEBUG whatever the logger passes on.
    ``console_enabled=False`` leaves only the file handler.

    Returns:
        The configured "relmirror" logger
    """
    logger = logging.getLogger("relmirror")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level_int = _parse_level(level)
    logger.setLevel(level_int)

    if console_enabled:
        if use_rich:
            logger.addHandler(
                RichHandler(
                    level=level_int,
                    console=Console(stderr=True),
                    show_time=True,
                    show_path=False,
                    markup=False,
                    rich_tracebacks=True,
                    tracebacks_show_locals=False,
                    log_time_format="[%X]",
                    omit_repeated_times=False,
                )
            )
        else:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level_int)
            console_handler.setFormatter(PlainFormatter())
            logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode="a")
        # File captures everything the logger lets through
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FileFormatter())
        logger.addHandler(file_handler)

    global _logging_setup_done
    _logging_setup_done = True
    return logger


_logging_setup_done = False
_logging_setup_lock = threading.Lock()


def _auto_setup_logging() -> None:
    """
    Set up default console logging if nothing configured it yet.

    This is called by get_logger() so library use (tests, embedding) still
    produces output without an explicit setup_logging() call.
    """
    global _logging_setup_done

    if _logging_setup_done:
        return

    with _logging_setup_lock:
        if _logging_setup_done:
            return

        relmirror_logger = logging.getLogger("relmirror")
        if relmirror_logger.handlers:
            _logging_setup_done = True
            return

        relmirror_logger.setLevel(logging.INFO)
        _logging_setup_done = True


def get_logger(name: str = "relmirror") -> logging.Logger:
    """Return a logger under the "relmirror" hierarchy, applying the default level on first use."""
    _auto_setup_logging()

    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
