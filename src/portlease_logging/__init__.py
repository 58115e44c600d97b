"""Logging configuration for portlease packages."""

from logging import DEBUG, ERROR, INFO, WARNING

from .config import configure_logger, get_cli_logger, get_log_level, get_logger
from .utils import get_log_file_path

__all__ = [
    "DEBUG",
    "ERROR",
    "INFO",
    "WARNING",
    "configure_logger",
    "get_cli_logger",
    "get_log_file_path",
    "get_log_level",
    "get_logger",
]
