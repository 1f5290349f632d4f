"""Logging configuration for roochdeploy.

All loggers live under the ``roochdeploy`` namespace so the CLI can tune the
package verbosity without touching the root logger or third-party libraries
such as the kubernetes client and urllib3.
"""

from __future__ import annotations

import logging
import os
import sys

PACKAGE_LOGGER = "roochdeploy"
LOG_LEVEL_ENV_VAR = "ROOCHDEPLOY_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_NOISY_LOGGERS = ("kubernetes", "urllib3")


def _resolve_level(verbose: bool, quiet: bool) -> int:
    """Pick the log level from flags, letting the environment override."""
    env_level = os.environ.get(LOG_LEVEL_ENV_VAR)
    if env_level:
        level = logging.getLevelName(env_level.strip().upper())
        if isinstance(level, int):
            return level
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the package logger.

    Args:
        verbose: Enable DEBUG output
        quiet: Only emit errors

    Returns:
        The configured ``roochdeploy`` logger
    """
    level = _resolve_level(verbose, quiet)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # sys.stderr may have been swapped since the last call
    for existing in list(logger.handlers):
        if isinstance(existing, logging.StreamHandler):
            logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if level <= logging.DEBUG else logging.WARNING
        )

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the package logger."""
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
