"""Lease records persisted in the registry."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, NamedTuple

from portlease.common.errors import RegistryCorruptError


class LeasePorts(NamedTuple):
    """Port pair handed to the process launcher."""

    frontend_port: int
    backend_port: int


def utc_now() -> datetime:
    """Current time, timezone-aware UTC, second precision."""
    return datetime.now(tz=timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    """Format as RFC 3339 with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_pid(value: Any, field_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{field_name} must be an integer or null, got {value!r}"
        raise RegistryCorruptError(msg, details={"field": field_name})
    return value


def _port(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{field_name} must be a positive integer, got {value!r}"
        raise RegistryCorruptError(msg, details={"field": field_name})
    return value


@dataclass(frozen=True)
class Lease:
    """Binding of a project to a frontend/backend port pair.

    Ports are fixed for the life of the record; a new allocation produces a
    new ``Lease``. The pid fields name the processes that were last started
    on those ports, ``None`` meaning not running.
    """

    project_name: str
    frontend_port: int
    backend_port: int
    last_used: datetime
    pid_frontend: int | None = None
    pid_backend: int | None = None

    @property
    def ports(self) -> LeasePorts:
        return LeasePorts(self.frontend_port, self.backend_port)

    @property
    def has_pids(self) -> bool:
        return self.pid_frontend is not None or self.pid_backend is not None

    def with_pids(self, pid_frontend: int | None, pid_backend: int | None) -> Lease:
        return replace(self, pid_frontend=pid_frontend, pid_backend=pid_backend)

    def cleared(self) -> Lease:
        """Same ports, no running processes."""
        return self.with_pids(None, None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "frontend_port": self.frontend_port,
            "backend_port": self.backend_port,
            "last_used": format_timestamp(self.last_used),
            "pid_frontend": self.pid_frontend,
            "pid_backend": self.pid_backend,
        }

    @classmethod
    def from_dict(cls, project_name: str, data: Any) -> Lease:
        """Build a lease from its persisted form.

        Raises
        ------
        RegistryCorruptError
            If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            msg = f"Lease for '{project_name}' is not an object"
            raise RegistryCorruptError(msg, details={"project": project_name})
        try:
            last_used = parse_timestamp(str(data["last_used"]))
            return cls(
                project_name=project_name,
                frontend_port=_port(data["frontend_port"], "frontend_port"),
                backend_port=_port(data["backend_port"], "backend_port"),
                last_used=last_used,
                pid_frontend=_optional_pid(data.get("pid_frontend"), "pid_frontend"),
                pid_backend=_optional_pid(data.get("pid_backend"), "pid_backend"),
            )
        except (KeyError, ValueError) as e:
            msg = f"Malformed lease for '{project_name}': {e}"
            raise RegistryCorruptError(msg, details={"project": project_name}) from e
