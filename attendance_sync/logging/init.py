from __future__ import annotations

import logging
import sys

"""Application logging.

Every module logs through ``logging.getLogger(__name__)``. Those loggers sit
under the ``attendance_sync`` logger, which owns the single stdout handler
configured here, so each record comes out as ``<LABEL> <message>``::

    INFO Successfully opened target attendance spreadsheet ...
    WARN Sheet 'new member form' not found ...
    SUMMARY sources=2/2 failed=0 skipped=0 appended=3 ...
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "setup_logging",
]

APP_LOGGER_NAME = "attendance_sync"

# between INFO (20) and WARNING (30): shown at the default level, never an error
SUMMARY_LEVEL = 25

_LABELS = {
    logging.WARNING: "WARN",
    SUMMARY_LEVEL: "SUMMARY",
}

_configured: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message`` with tracebacks on the following lines."""

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        text = f"{label} {record.getMessage()}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _apply_level(logger: logging.Logger, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configure the application logger once; later calls only change the level.

    Args:
        debug: Emit DEBUG records as well

    Returns:
        The ``attendance_sync`` logger
    """
    global _configured

    if _configured is None:
        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        logger = logging.getLogger(APP_LOGGER_NAME)
        logger.handlers.clear()
        stdout = logging.StreamHandler(sys.stdout)
        stdout.setFormatter(LabeledFormatter())
        logger.addHandler(stdout)
        # the root logger must not print the same record again
        logger.propagate = False
        _configured = logger

    _apply_level(_configured, debug)
    return _configured


def get_logger() -> logging.Logger:
    return _configured if _configured is not None else setup_logging()


def log_summary(message: str) -> None:
    """Emit the end-of-run line at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the handler and forget the configuration (tests only)."""
    global _configured
    if _configured is not None:
        _configured.handlers.clear()
        _configured.setLevel(logging.NOTSET)
        _configured.propagate = True
    _configured = None
