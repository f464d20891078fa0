"""Tests for buildmeta logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from buildmeta.logging import configure_logging, get_logger


def _handler(logger: logging.Logger, kind: type) -> logging.Handler:
    return next(handler for handler in logger.handlers if type(handler) is kind)


def test_console_only_logging_defaults_to_warning() -> None:
    logger = configure_logging()

    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert _handler(logger, logging.StreamHandler).level == logging.WARNING


def test_verbose_logging_enables_debug() -> None:
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert _handler(logger, logging.StreamHandler).level == logging.DEBUG


def test_file_sink_captures_debug_while_console_stays_quiet(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "buildmeta.log"
    logger = configure_logging(log_file=log_file)

    try:
        assert logger.level == logging.DEBUG
        assert _handler(logger, logging.StreamHandler).level == logging.WARNING
        assert _handler(logger, logging.FileHandler).level == logging.DEBUG

        get_logger("extractors.test").debug("resolved demo")
        for handler in logger.handlers:
            handler.flush()

        assert "resolved demo" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_get_logger_uses_buildmeta_hierarchy() -> None:
    assert get_logger().name == "buildmeta"
    assert get_logger("registry").name == "buildmeta.registry"
