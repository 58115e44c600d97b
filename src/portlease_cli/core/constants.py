"""Constants and enums for the portlease CLI."""

from enum import Enum


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


ALL_LOG_LEVELS = tuple(LogLevel)

# Packages whose loggers the CLI configures
LOGGING_PACKAGES = ("portlease", "portlease_common", "portlease_cli")


class ExitCode:
    """Exit codes for CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    NOT_FOUND = 2
    CONFIG_ERROR = 3
    PERMISSION_ERROR = 4
    CONFLICT = 5
    EXHAUSTED = 6
    TIMEOUT = 124
    INTERRUPTED = 130


class Icons:
    """Unicode icons for headers and status markers."""

    ERROR = "❌"
    ROCKET = "🚀"
    STOP = "🛑"
    LIST = "📋"


class OutputFormat:
    """Output formats for lease commands."""

    TEXT = "text"
    ENV = "env"
    JSON = "json"
