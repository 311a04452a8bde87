"""Test logging in config.py."""

import logging

import pytest

from fast5vcd import config


@pytest.fixture(autouse=True)
def _fresh_logger():
    logger = logging.getLogger(config.LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    logger.handlers.clear()
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.mark.parametrize(
    "verbosity, level",
    [(-1, logging.WARNING), (0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_verbosity_level(verbosity, level):
    assert config.verbosity_level(verbosity) == level


def test_get_logger_default_level(caplog: pytest.LogCaptureFixture) -> None:
    """Default verbosity only lets warnings through."""
    logger = config.get_logger()

    logger.info("Info message here.")
    logger.warning("Warning message here.")

    assert logger.getEffectiveLevel() == logging.WARNING
    assert "Info message here." not in caplog.text
    assert "Warning message here." in caplog.text


def test_get_logger_verbose_applies_to_children(caplog: pytest.LogCaptureFixture) -> None:
    config.get_logger(verbosity=2)

    logging.getLogger("fast5vcd.io.decoder").debug("Debug message here.")

    assert "Debug message here." in caplog.text


def test_get_logger_second_call() -> None:
    """Test get logger when a handler already exists."""
    logger = config.get_logger()
    second_logger = config.get_logger(verbosity=1)

    assert len(logger.handlers) == len(second_logger.handlers) == 1
    assert logger is second_logger
    assert second_logger.level == logging.INFO


def test_get_version() -> None:
    assert isinstance(config.get_version(), str)
