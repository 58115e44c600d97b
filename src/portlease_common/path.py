"""Path utilities for consistent path handling across portlease."""

from __future__ import annotations

from pathlib import Path

from portlease_common.constants import LOG_SUBDIR, PORTLEASE_HOME_DIR


def get_portlease_home() -> Path:
    """Get the portlease home directory (~/.portlease).

    Returns
    -------
    Path
        The portlease home directory path
    """
    return Path.home() / PORTLEASE_HOME_DIR


def get_portlease_log_dir() -> Path:
    """Get the portlease log directory (~/.portlease/log).

    Returns
    -------
    Path
        The portlease log directory path
    """
    return Path.home() / PORTLEASE_HOME_DIR / LOG_SUBDIR


def get_user_config_path() -> Path:
    """Get path to user-level portlease configuration file."""
    return Path.home() / ".config" / "portlease" / "config.yaml"


def normalize_path(path: str | Path) -> Path:
    """Expand ``~`` and resolve symlinks when the path exists.

    Missing paths are returned expanded but otherwise untouched.
    """
    path_obj = Path(path).expanduser()
    if path_obj.exists():
        path_obj = path_obj.resolve(strict=False)
    return path_obj


def derive_project_name(directory: str | Path | None = None) -> str:
    """Derive a stable project name from a working directory.

    Parameters
    ----------
    directory : str | Path, optional
        Directory identifying the project. Defaults to the current directory.

    Returns
    -------
    str
        The directory's base name
    """
    base = normalize_path(directory) if directory else Path.cwd().resolve()
    return base.name or str(base)
