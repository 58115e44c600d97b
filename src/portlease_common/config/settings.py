"""Resolved runtime settings.

Precedence, lowest to highest: built-in defaults, user YAML, project YAML,
environment variables, explicit keyword overrides.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from portlease_common.config.project import load_merged_config
from portlease_common.constants import (
    DEFAULT_BACKEND_START,
    DEFAULT_FRONTEND_START,
    DEFAULT_HASH_SPAN,
    DEFAULT_LOCK_TIMEOUT_S,
    MAX_PORT,
    EnvVars,
    StartStrategy,
)
from portlease_common.env import reader
from portlease_common.path import get_portlease_home, normalize_path
from portlease_logging import get_logger

logger = get_logger(__name__)


def hashed_start_port(project_name: str, base: int, span: int) -> int:
    """Offset ``base`` by a stable hash of ``project_name`` within ``span``.

    Spreads unrelated projects across a block so the linear scan usually
    succeeds on the first probe. Only a seed; allocation still scans. The
    span is narrowed so the seed never passes ``MAX_PORT``.
    """
    span = min(span, MAX_PORT - base + 1)
    if span <= 0:
        return base
    digest = hashlib.sha1(project_name.encode("utf-8")).hexdigest()
    return base + int(digest, 16) % span


@dataclass(frozen=True)
class Settings:
    """Effective coordinator configuration."""

    registry_dir: Path
    lock_timeout: float
    force_break_on_timeout: bool
    frontend_start: int
    backend_start: int
    start_strategy: str = StartStrategy.FIXED
    hash_span: int = 100
    frontend_hint: int | None = None
    backend_hint: int | None = None

    @property
    def has_explicit_hints(self) -> bool:
        """Whether both launcher start-port hints were supplied."""
        return self.frontend_hint is not None and self.backend_hint is not None

    def start_ports_for(self, project_name: str) -> tuple[int, int]:
        """Return the default (frontend, backend) search starts for a project."""
        if self.start_strategy == StartStrategy.HASHED:
            return (
                hashed_start_port(project_name, self.frontend_start, self.hash_span),
                hashed_start_port(project_name, self.backend_start, self.hash_span),
            )
        return self.frontend_start, self.backend_start

    def with_overrides(self, **changes: Any) -> Settings:
        """Return a copy with the non-None ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def resolve_settings(
    project_dir: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Build ``Settings`` from config files, environment and overrides.

    Parameters
    ----------
    project_dir : Path, optional
        Directory whose ``.portlease.yaml`` is merged in
    **overrides
        Explicit field values; ``None`` values are ignored

    Returns
    -------
    Settings
        The resolved settings

    Values that do not convert, or ports outside 1-65535, are logged and
    replaced by their defaults.

    Raises
    ------
    ValueError
        If the configured start strategy is unknown
    """
    cfg = load_merged_config(project_dir)
    registry_cfg = cfg["registry"]
    ports_cfg = cfg["ports"]

    configured_strategy = ports_cfg.get("start_strategy")
    if not isinstance(configured_strategy, str):
        configured_strategy = StartStrategy.FIXED
    strategy = reader.read_str(EnvVars.START_STRATEGY, default=configured_strategy)
    if strategy not in StartStrategy.ALL:
        msg = f"Unknown start strategy '{strategy}' (expected one of {StartStrategy.ALL})"
        raise ValueError(msg)

    registry_dir = reader.read_str(EnvVars.REGISTRY_DIR) or registry_cfg.get("dir")
    if not isinstance(registry_dir, str) or not registry_dir.strip():
        registry_dir = str(get_portlease_home())

    settings = Settings(
        registry_dir=normalize_path(registry_dir),
        lock_timeout=reader.read_float(
            EnvVars.LOCK_TIMEOUT,
            default=_as_timeout(registry_cfg.get("lock_timeout")),
        ),
        force_break_on_timeout=reader.read_bool(
            EnvVars.FORCE_BREAK_LOCK,
            default=_as_bool(registry_cfg.get("force_break_on_timeout"), "force_break_on_timeout"),
        ),
        frontend_start=_as_port(ports_cfg.get("frontend_start"), "frontend_start")
        or DEFAULT_FRONTEND_START,
        backend_start=_as_port(ports_cfg.get("backend_start"), "backend_start")
        or DEFAULT_BACKEND_START,
        start_strategy=strategy,
        hash_span=_as_span(ports_cfg.get("hash_span")),
        frontend_hint=_as_port(
            reader.read_int(EnvVars.FRONTEND_START_PORT),
            EnvVars.FRONTEND_START_PORT,
        ),
        backend_hint=_as_port(
            reader.read_int(EnvVars.BACKEND_START_PORT),
            EnvVars.BACKEND_START_PORT,
        ),
    )
    return settings.with_overrides(**overrides)


def _ignored(name: str, value: Any) -> None:
    logger.warning("Ignoring invalid %s value %r", name, value)


def _as_port(value: Any, name: str) -> int | None:
    """Return ``value`` as a port number, None when absent or invalid."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        _ignored(name, value)
        return None
    try:
        port = int(value)
    except ValueError:
        _ignored(name, value)
        return None
    if not 1 <= port <= MAX_PORT:
        _ignored(name, value)
        return None
    return port


def _as_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        if value is not None:
            _ignored("lock_timeout", value)
        return DEFAULT_LOCK_TIMEOUT_S
    try:
        timeout = float(value)
    except ValueError:
        _ignored("lock_timeout", value)
        return DEFAULT_LOCK_TIMEOUT_S
    if timeout < 0:
        _ignored("lock_timeout", value)
        return DEFAULT_LOCK_TIMEOUT_S
    return timeout


def _as_span(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if value is not None:
        _ignored("hash_span", value)
    return DEFAULT_HASH_SPAN


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is not None:
        _ignored(name, value)
    return False
