from __future__ import annotations

import logging

from booktrade.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    log_summary,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME == "booktrade"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_installs_one_handler():
    first = setup_logging()
    second = setup_logging(debug=True)
    assert second is first
    assert len(first.handlers) == 1


def test_labeled_prefixes():
    fmt = LabeledFormatter()

    def render(level: int, msg: str) -> str:
        record = logging.LogRecord(LOGGER_NAME, level, __file__, 1, msg, None, None)
        return fmt.format(record)

    assert render(logging.INFO, "hello") == "INFO hello"
    assert render(logging.WARNING, "careful") == "WARN careful"
    assert render(logging.ERROR, "bad") == "ERROR bad"
    assert render(SUMMARY_LEVEL, "source=booksonix") == "SUMMARY source=booksonix"


def test_summary_and_module_loggers_reach_stdout(capsys):
    setup_logging()
    logging.getLogger("booktrade.services.orchestrator").info("from a module")
    log_summary("rows=3 new=1")
    out = capsys.readouterr().out
    assert "INFO from a module" in out
    assert "SUMMARY rows=3 new=1" in out


def test_log_summary_does_not_repeat_label(capsys):
    setup_logging()
    log_summary("SUMMARY source=gazelle rows=2")
    out = capsys.readouterr().out
    assert "SUMMARY source=gazelle rows=2" in out
    assert "SUMMARY SUMMARY" not in out


def test_debug_lowers_levels(capsys):
    logger = setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_debug_off_again_hides_debug_lines(capsys):
    setup_logging(debug=True)
    logger = setup_logging()
    capsys.readouterr()
    logger.debug("hidden")
    assert "hidden" not in capsys.readouterr().out
