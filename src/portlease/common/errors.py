"""Error taxonomy for port lease coordination."""

from typing import Any


class PortLeaseError(Exception):
    """Base error for portlease.

    Parameters
    ----------
    message : str
        Human readable description
    details : dict, optional
        Context for the caller (project name, ports, pids, paths)
    recoverable : bool
        Whether retrying the same call may succeed
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message


class LockTimeoutError(PortLeaseError):
    """The registry lock could not be obtained within the timeout."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=details, recoverable=True)


class AlreadyRunningError(PortLeaseError):
    """Both recorded processes of a project's lease are still alive."""


class NoFreePortError(PortLeaseError):
    """The linear scan ran past the highest valid port."""


class RegistryCorruptError(PortLeaseError):
    """The persisted registry could not be parsed.

    Only raised by the parsing layer; ``LeaseRegistry.load`` absorbs it and
    continues with an empty mapping.
    """
