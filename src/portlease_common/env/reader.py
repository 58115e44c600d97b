"""Typed readers for environment variables.

Every reader takes the variable name and a default. Unset or empty variables
return the default; numeric readers also fall back to the default when the
value does not parse.
"""

import os

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def read_str(name: str, default: str | None = None) -> str | None:
    """Read a string variable."""
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def read_int(name: str, default: int | None = None) -> int | None:
    """Read an integer variable."""
    value = read_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def read_float(name: str, default: float | None = None) -> float | None:
    """Read a float variable."""
    value = read_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def read_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag (``1/true/yes/on`` or ``0/false/no/off``)."""
    value = read_str(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default
