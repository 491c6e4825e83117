# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Logging utilities with consistent formatting.

Every module gets its logger through get_logger(__name__); all of them hang
below the "imgindex" logger, which owns the only handler.

Copyright 2025 DNAi inc.
"""

import logging
import sys

ROOT_LOGGER = "imgindex"

LOG_FORMAT = "%(levelname)-7s %(name)s: %(message)s"


class LevelFormatter(logging.Formatter):
    """Formatter that drops the level prefix for INFO records."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno == logging.INFO:
            return logging.Formatter("%(message)s").format(record)
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the imgindex root logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name == "__main__":
        name = f"{ROOT_LOGGER}.main"
    elif name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)


def init_log(stream=None) -> logging.Logger:
    """
    Install the stream handler on the root logger at WARNING.

    Calling it again replaces the previous handler, so the CLI can be run
    several times in one process.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_imgindex", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(LevelFormatter(LOG_FORMAT))
    handler._imgindex = True
    logger.addHandler(handler)
    logger.setLevel(logging.WARNING)
    return logger


def configure_log(verbose: bool = False, silent: bool = False) -> None:
    """
    Adjust verbosity: INFO when verbose, ERROR when silent, else WARNING.

    The caller is responsible for rejecting verbose and silent together.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if verbose:
        logger.setLevel(logging.INFO)
    elif silent:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.WARNING)
