"""Tests for logging setup."""

import logging

from rich.logging import RichHandler

from utils.logger import get_logger, setup_logger


def test_setup_logger_is_idempotent():
    logger = setup_logger("tests.logger.rich", level="debug")
    again = setup_logger("tests.logger.rich", level="debug")

    assert again is logger
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)
    assert logger.level == logging.DEBUG


def test_plain_handler_and_unknown_level():
    logger = setup_logger("tests.logger.plain", level="not-a-level", use_rich=False)

    assert logger.level == logging.INFO
    assert not isinstance(logger.handlers[0], RichHandler)


def test_get_logger_attaches_handler_once():
    logger = get_logger("tests.logger.get")

    assert get_logger("tests.logger.get") is logger
    assert len(logger.handlers) == 1
