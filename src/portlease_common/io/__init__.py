"""File I/O helpers."""

from .files import (
    FileOperationError,
    ensure_dir,
    safe_read_json,
    safe_read_yaml,
    safe_write_json,
)

__all__ = [
    "FileOperationError",
    "ensure_dir",
    "safe_read_json",
    "safe_read_yaml",
    "safe_write_json",
]
