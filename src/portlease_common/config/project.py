"""Project/user YAML configuration loading for portlease.

Configuration is looked up in the user file (~/.config/portlease/config.yaml)
and the project file (.portlease.yaml), deep-merged over built-in defaults.
Project values win over user values.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from portlease_common.constants import (
    DEFAULT_BACKEND_START,
    DEFAULT_FRONTEND_START,
    DEFAULT_HASH_SPAN,
    DEFAULT_LOCK_TIMEOUT_S,
    PROJECT_CONFIG_FILE,
    StartStrategy,
)
from portlease_common.io import safe_read_yaml
from portlease_common.io.files import FileOperationError
from portlease_common.path import get_portlease_home, get_user_config_path
from portlease_logging import get_logger

logger = get_logger(__name__)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dictionaries in place and return ``base``.

    Values from ``override`` take precedence. Nested dicts are merged
    recursively; other values are replaced.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def default_config() -> dict[str, Any]:
    """Return the default configuration structure."""
    return {
        "registry": {
            "dir": str(get_portlease_home()),
            "lock_timeout": DEFAULT_LOCK_TIMEOUT_S,
            "force_break_on_timeout": False,
        },
        "ports": {
            "frontend_start": DEFAULT_FRONTEND_START,
            "backend_start": DEFAULT_BACKEND_START,
            "start_strategy": StartStrategy.FIXED,
            "hash_span": DEFAULT_HASH_SPAN,
        },
    }


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file, returning an empty dict when missing or unreadable."""
    try:
        if not path.exists():
            return {}
        data = safe_read_yaml(path) or {}
        return data if isinstance(data, dict) else {}
    except FileOperationError:
        return {}


def drop_malformed_sections(data: dict[str, Any], path: Path) -> dict[str, Any]:
    """Remove sections that should be mappings but are not.

    An empty ``ports:`` key loads as None; merged as-is it would replace the
    default section and break every lookup below it.
    """
    defaults = default_config()
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(defaults.get(key), dict) and not isinstance(value, dict):
            logger.warning("Ignoring section '%s' in %s: expected a mapping", key, path)
            continue
        cleaned[key] = value
    return cleaned


def get_project_config_path(project_dir: Path) -> Path:
    """Get path to the project-level configuration file."""
    return project_dir / PROJECT_CONFIG_FILE


def load_merged_config(project_dir: Path | None = None) -> dict[str, Any]:
    """Load defaults, then user config, then project config.

    Parameters
    ----------
    project_dir : Path, optional
        Project directory holding ``.portlease.yaml``; skipped when None

    Returns
    -------
    dict[str, Any]
        The merged configuration
    """
    cfg = default_config()
    paths = [get_user_config_path()]
    if project_dir is not None:
        paths.append(get_project_config_path(project_dir))
    for path in paths:
        deep_merge(cfg, drop_malformed_sections(load_yaml(path), path))
    return cfg
