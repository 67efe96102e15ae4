"""Tests for process-wide logging setup."""

import logging
from collections.abc import Iterator

import pytest

from backend.app.logging_config import LOG_FORMAT, configure_logging


@pytest.fixture
def root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def _console_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if h.get_name() == "smartnz-console"]


def test_installs_single_handler(root_logger: logging.Logger) -> None:
    configure_logging("debug")
    configure_logging("WARNING")

    handlers = _console_handlers(root_logger)
    assert len(handlers) == 1
    assert handlers[0].formatter._fmt == LOG_FORMAT
    assert root_logger.level == logging.WARNING
