"""Logger configuration profiles.

``cli``
    File logging to ``~/.portlease/log/cli.log`` (unless disabled through
    ``PORTLEASE_NO_FILE_LOGGING``), plus a colored stderr handler when
    ``to_console`` is set.
``test``
    Console only, no file handler.
"""

import logging
import sys

from portlease_common.constants import EnvVars
from portlease_common.env import reader

from .formatters import DEFAULT_FORMAT, ColoredFormatter, SafeFormatter
from .handlers import HalvingFileHandler
from .utils import get_log_file_path, should_use_file_logging

PROFILES = ("cli", "test")
DEFAULT_LEVEL = "INFO"


def get_log_level(default: str = DEFAULT_LEVEL) -> str:
    """Return the level from ``PORTLEASE_LOG_LEVEL`` or ``default``."""
    return (reader.read_str(EnvVars.LOG_LEVEL, default=default) or default).upper()


def _reset(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.filters.clear()


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter(use_colors=sys.stderr.isatty()))
    return handler


def configure_logger(
    name: str,
    profile: str = "cli",
    level: str | None = None,
    to_console: bool = False,
    log_file: str | None = None,
) -> logging.Logger:
    """Configure a named logger for one of the supported profiles.

    Parameters
    ----------
    name : str
        Logger name, usually a package name
    profile : str
        ``cli`` or ``test``
    level : str, optional
        Level name; falls back to ``get_log_level()``
    to_console : bool
        Also log to stderr (``cli`` profile)
    log_file : str, optional
        Override the log file path (``cli`` profile)

    Returns
    -------
    logging.Logger
        The configured logger

    Raises
    ------
    ValueError
        If ``profile`` is not supported
    """
    if profile not in PROFILES:
        msg = f"Unknown profile '{profile}' (expected one of {PROFILES})"
        raise ValueError(msg)

    logger = logging.getLogger(name)
    _reset(logger)
    logger.setLevel((level or get_log_level()).upper())

    if profile == "test":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(SafeFormatter(DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.propagate = True
        return logger

    if should_use_file_logging():
        file_handler = HalvingFileHandler(log_file or get_log_file_path("cli"))
        file_handler.setFormatter(SafeFormatter(DEFAULT_FORMAT))
        logger.addHandler(file_handler)
    if to_console:
        logger.addHandler(_console_handler())
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a library logger; handlers are attached by ``configure_logger``."""
    return logging.getLogger(name)


def get_cli_logger(name: str) -> logging.Logger:
    """Return a logger for CLI modules."""
    return logging.getLogger(name)
