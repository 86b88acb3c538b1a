from __future__ import annotations

import logging
import sys

"""Labeled stdout logging for the ingest CLI.

Every line the tool prints starts with DEBUG|INFO|WARN|ERROR|SUMMARY so that
cron mail and CI logs can grep for the per-upload summary. Module loggers
(logging.getLogger(__name__)) live under the `booktrade` namespace and reach
the single handler installed on it.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "log_summary",
    "reset_logging",
    "setup_logging",
]

LOGGER_NAME = "booktrade"
SUMMARY_LEVEL = 25  # between INFO and WARNING

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}


class LabeledFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return f"{_LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"


def _labeled_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if isinstance(handler.formatter, LabeledFormatter):
            return handler
    return None


def setup_logging(debug: bool = False) -> logging.Logger:
    """Install the labeled stdout handler on the `booktrade` logger.

    The handler is added once; later calls only change the level. Propagation
    to the root logger is off so nothing is printed twice.
    """
    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    handler = _labeled_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(LabeledFormatter())
        logger.addHandler(handler)
        logger.propagate = False

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    handler.setLevel(level)
    if debug:
        logger.debug("debug mode enabled")
    return logger


def log_summary(line: str) -> None:
    """Emit a rendered SUMMARY line; the formatter supplies the label."""
    logging.getLogger(LOGGER_NAME).log(SUMMARY_LEVEL, line.removeprefix("SUMMARY "))


def reset_logging() -> None:
    """Remove the installed handler so the next setup binds to the current stdout."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
