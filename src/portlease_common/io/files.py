"""Safe file operations for portlease."""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


class FileOperationError(Exception):
    """Raised when file operations fail."""


def safe_read_yaml(path: Path) -> dict[str, Any]:
    """Safely read YAML file with error handling.

    Parameters
    ----------
    path : Path
        Path to YAML file

    Returns
    -------
    dict[str, Any]
        Parsed YAML data

    Raises
    ------
    FileOperationError
        If file cannot be read or parsed
    """
    try:
        if not path.exists():
            msg = f"YAML file does not exist: {path}"
            raise FileOperationError(msg)

        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if data is not None else {}

    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise FileOperationError(msg) from e
    except OSError as e:
        msg = f"Cannot read YAML file {path}: {e}"
        raise FileOperationError(msg) from e


def safe_read_json(path: Path) -> dict[str, Any]:
    """Safely read JSON file with error handling.

    Parameters
    ----------
    path : Path
        Path to JSON file

    Returns
    -------
    dict[str, Any]
        Parsed JSON data

    Raises
    ------
    FileOperationError
        If file cannot be read, cannot be parsed, or does not hold an object
    """
    try:
        if not path.exists():
            msg = f"JSON file does not exist: {path}"
            raise FileOperationError(msg)

        with path.open(encoding="utf-8") as f:
            data = json.load(f)

    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        msg = f"Invalid JSON in {path}: {e}"
        raise FileOperationError(msg) from e
    except OSError as e:
        msg = f"Cannot read JSON file {path}: {e}"
        raise FileOperationError(msg) from e

    if not isinstance(data, dict):
        msg = f"Expected a JSON object in {path}, got {type(data).__name__}"
        raise FileOperationError(msg)
    return data


def safe_write_json(path: Path, data: dict[str, Any]) -> None:
    """Safely write JSON file with atomic operation.

    The payload is written and fsynced to a temporary file in the target
    directory, then renamed over ``path``. Readers see either the old or the
    new content, never a partial file.

    Parameters
    ----------
    path : Path
        Path to JSON file
    data : dict[str, Any]
        Data to write

    Raises
    ------
    FileOperationError
        If file cannot be written
    """
    temp_path = None
    try:
        ensure_dir(path.parent)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=path.parent,
            delete=False,
        ) as temp_file:
            temp_path = Path(temp_file.name)
            json.dump(data, temp_file, indent=2, sort_keys=True)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        # Atomic move
        temp_path.replace(path)

    except (OSError, TypeError, ValueError) as e:
        # Clean up temp file if it exists
        if temp_path is not None:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
        msg = f"Cannot write JSON file {path}: {e}"
        raise FileOperationError(msg) from e


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary.

    Parameters
    ----------
    path : Path
        Directory path to ensure

    Returns
    -------
    Path
        The directory path

    Raises
    ------
    FileOperationError
        If directory cannot be created
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        return path
    except OSError as e:
        msg = f"Cannot create directory {path}: {e}"
        raise FileOperationError(msg) from e
