"""Configuration module for fast5vcd."""

import logging
from importlib import metadata

LOGGER_NAME = "fast5vcd"

_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def get_version() -> str:
    """Return fast5vcd version."""
    try:
        return metadata.version("fast5vcd")
    except metadata.PackageNotFoundError:
        return "Version unknown"


def verbosity_level(verbosity: int) -> int:
    """Map a -v count to a logging level: 0 warning, 1 info, 2+ debug."""
    return _LEVELS[min(max(verbosity, 0), len(_LEVELS) - 1)]


def get_logger(verbosity: int = 0) -> logging.Logger:
    """Gets the fast5vcd logger, set to the level matching `verbosity`.

    Every module logs through a child of this logger, so the level applies
    to the whole package.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(verbosity_level(verbosity))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)s - %(funcName)s - %(message)s",  # noqa: E501
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
