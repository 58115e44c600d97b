"""Shared configuration utilities for portlease (portlease_common.config).

This package provides:
- project: YAML-based project/user configuration loader
- settings: the resolved ``Settings`` view with environment overrides
"""

from .project import deep_merge, load_merged_config
from .settings import Settings, hashed_start_port, resolve_settings

__all__ = [
    "Settings",
    "deep_merge",
    "hashed_start_port",
    "load_merged_config",
    "resolve_settings",
]
