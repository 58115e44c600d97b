"""Logging path and environment helpers."""

from pathlib import Path

from portlease_common.constants import EnvVars
from portlease_common.env import reader
from portlease_common.path import get_portlease_log_dir


def get_log_file_path(name: str) -> str:
    """Return the log file path for a named log (e.g. ``cli``)."""
    return str(Path(get_portlease_log_dir()) / f"{name}.log")


def should_use_file_logging() -> bool:
    """File logging is on unless ``PORTLEASE_NO_FILE_LOGGING`` is set."""
    return not reader.read_bool(EnvVars.NO_FILE_LOGGING, default=False)
